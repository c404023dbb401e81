"""Entry point for running the Gamevault CLI.

This module defines the top-level Click group that aggregates all subcommands
defined in the ``gamevault.interfaces.cli`` package. Executing
``python -m gamevault.interfaces.cli`` invokes this group.
"""

from __future__ import annotations

import logging
import os

import click

from gamevault.infrastructure.db.config import DB_PATH_ENV_VAR
from gamevault.infrastructure.observability import configure_logging

from .blacklist import blacklist
from .context import build_cli_context
from .sync import prices, refresh, sync


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--db",
    "db_path",
    default=None,
    help="Path to the SQLite database (overrides config and GAMEVAULT_DB_PATH).",
)
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(dir_okay=False),
    help="Path to a JSON config file.",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, db_path: str | None, config_path: str | None, verbose: bool) -> None:
    """Gamevault command-line interface."""
    configure_logging(logging.DEBUG if verbose else logging.WARNING)
    ctx.ensure_object(dict)
    ctx.obj["cli_context"] = build_cli_context(db_path, config_path)


@cli.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, type=int, show_default=True)
@click.pass_context
def serve(ctx: click.Context, host: str, port: int) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    os.environ[DB_PATH_ENV_VAR] = str(ctx.obj["cli_context"].db_path)

    uvicorn.run("gamevault.app.api:app", host=host, port=port)


cli.add_command(sync)
cli.add_command(refresh)
cli.add_command(prices)
cli.add_command(blacklist)


if __name__ == "__main__":
    cli()
