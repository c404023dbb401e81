"""Tests for logging context and in-process metrics."""

import logging

from gamevault.infrastructure.observability import (
    current_log_context,
    format_prometheus,
    get_counter_value,
    get_metrics_summary,
    log_context,
    record_fetch,
    record_sync_run,
    record_throttle,
)
from gamevault.infrastructure.observability.logging import ContextualFormatter


def test_log_context_nests_and_restores():
    with log_context(operation_id="op-1"):
        with log_context(item_id=42):
            assert current_log_context() == {"operation_id": "op-1", "item_id": 42}
        assert current_log_context() == {"operation_id": "op-1"}
    assert current_log_context() == {}


def test_formatter_appends_context_fields():
    formatter = ContextualFormatter("%(message)s")
    record = logging.LogRecord("gamevault", logging.INFO, __file__, 1, "Fetching", None, None)

    with log_context(operation_id="op-9"):
        text = formatter.format(record)

    assert text == "Fetching [operation_id=op-9]"


def test_fetch_metrics_are_counted_by_status():
    record_fetch("200")
    record_fetch("200")
    record_fetch("429")
    record_throttle()

    assert get_counter_value("fetch_requests_total", {"status": "200"}) == 2
    assert get_counter_value("fetch_requests_total", {"status": "429"}) == 1
    assert get_counter_value("fetch_throttled_total") == 1


def test_prometheus_export_includes_runs():
    record_sync_run("owned_items", "completed", 1.5, 10)

    text = format_prometheus()

    assert '# TYPE sync_runs_total counter' in text
    assert 'sync_runs_total{kind="owned_items",status="completed"} 1.0' in text
    assert 'sync_run_duration_seconds_count{kind="owned_items"} 1' in text
    summary = get_metrics_summary()
    assert summary["counters"]["sync_items_processed_total"]["kind=owned_items"] == 10.0
