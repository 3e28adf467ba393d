from __future__ import annotations

import logging
import threading
from typing import List

from authwatch.logging import INTERNAL_LOGGER_NAME, BackgroundWriter, WriteBatch

from conftest import internal_errors


class RecordingTarget:
    def __init__(self) -> None:
        self.batches: List[WriteBatch] = []

    def write_batch(self, batch: WriteBatch) -> None:
        self.batches.append(batch)


class BlockingTarget(RecordingTarget):
    """Holds the worker on its first batch until released."""

    def __init__(self) -> None:
        super().__init__()
        self.started = threading.Event()
        self.release = threading.Event()

    def write_batch(self, batch: WriteBatch) -> None:
        self.started.set()
        self.release.wait(5)
        super().write_batch(batch)


class ExplodingTarget:
    def write_batch(self, batch: WriteBatch) -> None:
        raise RuntimeError("disk on fire")


def _batch(label: str) -> WriteBatch:
    return WriteBatch(lines=[label])


def test_batches_are_delivered_in_order():
    target = RecordingTarget()
    writer = BackgroundWriter([target])
    try:
        for label in ("a", "b", "c"):
            assert writer.submit(_batch(label)) is True
        assert writer.flush(timeout=5) is True
    finally:
        writer.close()

    assert [b.lines[0] for b in target.batches] == ["a", "b", "c"]


def test_full_queue_drops_oldest_pending_batch(capture):
    target = BlockingTarget()
    writer = BackgroundWriter([target], max_queue=2)
    try:
        writer.submit(_batch("in-flight"))
        assert target.started.wait(5)

        writer.submit(_batch("first"))
        writer.submit(_batch("second"))
        writer.submit(_batch("third"))

        assert writer.dropped == 1
        target.release.set()
        assert writer.flush(timeout=5) is True
    finally:
        target.release.set()
        writer.close()

    assert [b.lines[0] for b in target.batches] == ["in-flight", "second", "third"]
    warnings = [r for r in capture.records if "dropped oldest" in r.getMessage()]
    assert len(warnings) == 1


def test_failing_target_does_not_starve_others(capture):
    target = RecordingTarget()
    writer = BackgroundWriter([ExplodingTarget(), target])
    try:
        writer.submit(_batch("x"))
        writer.flush(timeout=5)
    finally:
        writer.close()

    assert len(target.batches) == 1
    errors = internal_errors(capture)
    assert len(errors) == 1
    assert "ExplodingTarget" in errors[0].getMessage()


def test_close_drains_queue_and_rejects_new_batches():
    target = RecordingTarget()
    writer = BackgroundWriter([target])
    for label in ("a", "b"):
        writer.submit(_batch(label))

    writer.close()

    assert len(target.batches) == 2
    assert writer.submit(_batch("late")) is False


def test_flush_without_submissions_returns_immediately():
    writer = BackgroundWriter([RecordingTarget()])
    assert writer.flush(timeout=0.1) is True
    writer.close()


def test_submit_after_close_is_reported(capture):
    writer = BackgroundWriter([RecordingTarget()])
    writer.close()

    assert writer.submit(_batch("late")) is False

    warnings = [
        r for r in capture.records if r.name == INTERNAL_LOGGER_NAME and r.levelno == logging.WARNING
    ]
    assert len(warnings) == 1
    assert "[SECURITY_LOGGER_ERROR]" in warnings[0].getMessage()
    assert "closed" in warnings[0].getMessage()
