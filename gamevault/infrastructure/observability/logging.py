"""Logging setup and operation-scoped log context.

Sync runs bind their ``operation_id`` with :func:`log_context`; every record
emitted while the binding is active (including from background tasks created
inside it) is suffixed with ``[operation_id=...]`` so log lines can be matched
to the progress and result endpoints.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator

_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
QUIET_LOGGERS = ("httpx", "httpcore", "asyncio", "uvicorn.access")

_configured = False


class ContextualFormatter(logging.Formatter):
    """Append the bound context fields to each message."""

    def format(self, record: logging.LogRecord) -> str:
        fields = _log_context.get()
        if fields:
            suffix = " ".join(f"{key}={value}" for key, value in fields.items())
            record.msg = f"{record.msg} [{suffix}]"
        return super().format(record)


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Bind ``fields`` to every log record emitted inside the block.

    Nested blocks merge with the outer binding; the outer one is restored on
    exit.
    """
    token = _log_context.set({**_log_context.get(), **fields})
    try:
        yield
    finally:
        _log_context.reset(token)


def current_log_context() -> dict[str, Any]:
    return dict(_log_context.get())


def _stderr_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ContextualFormatter(DEFAULT_FORMAT))
    return handler


def configure_logging(
    level: int = logging.INFO,
    third_party_level: int = logging.WARNING,
) -> None:
    """Install the gamevault handler on the root logger.

    Called by the CLI group and the API lifespan. Only the first call has an
    effect.
    """
    global _configured
    if _configured:
        return
    _configured = True

    root = logging.getLogger()
    root.setLevel(level)
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.addHandler(_stderr_handler())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)


def get_logger(name: str) -> logging.Logger:
    """Return ``logging.getLogger(name)``, usable before :func:`configure_logging`."""
    logger = logging.getLogger(name)
    if not _configured and not logger.handlers and not logging.getLogger().handlers:
        logger.addHandler(_stderr_handler())
        logger.setLevel(logging.INFO)
    return logger


def log_exception(
    logger: logging.Logger,
    message: str,
    exc: BaseException,
    **context: Any,
) -> None:
    """Log ``exc`` with its traceback and any extra ``context`` fields."""
    with log_context(**context):
        logger.exception("%s: %s", message, exc)
