from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, List, Optional, Protocol, Sequence

from .formatting import LogEntry
from .internal import report_internal_error, report_internal_warning

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WriteBatch:
    """Everything one ingested event produced for the durable sinks."""

    entries: List[LogEntry] = field(default_factory=list)
    lines: List[str] = field(default_factory=list)


class BatchTarget(Protocol):
    def write_batch(self, batch: WriteBatch) -> None:
        ...


class BackgroundWriter:
    """Single worker thread draining a bounded queue of write batches.

    Overflow policy is drop-oldest: callers never block on I/O, and under
    pressure the stalest pending batch is discarded and reported.
    """

    def __init__(
        self,
        targets: Sequence[BatchTarget],
        max_queue: int = 1000,
        name: str = "authwatch-writer",
    ):
        self.targets: List[BatchTarget] = list(targets)
        self.max_queue = max_queue
        self.name = name
        self.dropped = 0
        self._queue: Deque[WriteBatch] = deque()
        self._condition = threading.Condition()
        self._pending = 0
        self._closed = False
        self._thread: Optional[threading.Thread] = None

    def _ensure_thread(self) -> None:
        if self._thread is None:
            self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
            self._thread.start()
            logger.debug("Started background writer %s", self.name)

    def submit(self, batch: WriteBatch) -> bool:
        """Queue ``batch``. Returns False (and reports it) once the writer is closed."""
        dropped = False
        with self._condition:
            closed = self._closed
            if not closed:
                if len(self._queue) >= self.max_queue:
                    self._queue.popleft()
                    self._pending -= 1
                    self.dropped += 1
                    dropped = True
                self._queue.append(batch)
                self._pending += 1
                self._ensure_thread()
                self._condition.notify_all()

        if closed:
            report_internal_warning(
                f"Writer {self.name} is closed; dropped batch of {len(batch.lines)} security log line(s)"
            )
            return False
        if dropped:
            report_internal_warning(
                f"Write queue full ({self.max_queue}); dropped oldest pending batch "
                f"(total dropped: {self.dropped})"
            )
        return True

    def _run(self) -> None:
        while True:
            with self._condition:
                while not self._queue and not self._closed:
                    self._condition.wait()
                if not self._queue:
                    return
                batch = self._queue.popleft()

            try:
                self._deliver(batch)
            finally:
                with self._condition:
                    self._pending -= 1
                    self._condition.notify_all()

    def _deliver(self, batch: WriteBatch) -> None:
        for target in self.targets:
            try:
                target.write_batch(batch)
            except Exception as exc:
                report_internal_error(f"Sink {type(target).__name__} failed", exc)

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Block until every queued batch has been delivered (or dropped)."""
        with self._condition:
            return self._condition.wait_for(lambda: self._pending == 0, timeout)

    def close(self, timeout: Optional[float] = 5.0) -> None:
        """Stop accepting batches, drain what is queued, and join the worker."""
        with self._condition:
            self._closed = True
            self._condition.notify_all()
        if self._thread is not None:
            self._thread.join(timeout)
            logger.debug("Stopped background writer %s", self.name)
