"""Tests for the progress and result registries."""

import threading

from gamevault.services.progress import ProgressInfo, ProgressTracker, SyncResultStore


def test_set_then_get_returns_exact_values():
    tracker = ProgressTracker()

    tracker.set_progress("op", 37.5, "Processing Items", "Processed 3/8 items", 12.0)

    assert tracker.try_get_progress("op") == ProgressInfo(
        37.5, "Processing Items", "Processed 3/8 items", 12.0
    )


def test_unknown_operation_is_not_found():
    tracker = ProgressTracker()

    assert tracker.try_get_progress("missing") is None
    assert SyncResultStore().try_get_result("missing") is None


def test_last_write_wins():
    tracker = ProgressTracker()
    tracker.set_progress("op", 10, "Fetching Owner Lists", "first")
    tracker.set_progress("op", 20, "Processing Items", "second")

    info = tracker.try_get_progress("op")

    assert (info.percent, info.phase, info.message) == (20, "Processing Items", "second")
    assert info.retry_after_seconds is None


def test_rate_limited_keeps_percent():
    tracker = ProgressTracker()
    tracker.set_progress("op", 55, "Processing Items", "working")

    tracker.mark_rate_limited("op", 60.0, "waiting")

    info = tracker.try_get_progress("op")
    assert info.percent == 55
    assert info.phase == "Rate Limited"
    assert info.retry_after_seconds == 60.0


def test_concurrent_writers_and_readers():
    tracker = ProgressTracker()
    errors = []

    def writer(n: int) -> None:
        for i in range(200):
            tracker.set_progress(f"op-{n}", i % 101, "Processing Items", str(i))

    def reader() -> None:
        for _ in range(200):
            for n in range(4):
                info = tracker.try_get_progress(f"op-{n}")
                if info is not None and not 0 <= info.percent <= 100:
                    errors.append(info)

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
    threads += [threading.Thread(target=reader) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert tracker.try_get_progress("op-3").message == "199"


def test_result_store_round_trip():
    store: SyncResultStore[str] = SyncResultStore()

    store.set_result("op", "done")

    assert store.try_get_result("op") == "done"
