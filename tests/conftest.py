from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List

import pytest

from authwatch.logging.console import SECURITY_LOGGER_NAME
from authwatch.logging.internal import INTERNAL_LOGGER_NAME
from authwatch.services.security_logger import SecurityLogger, reset_for_testing


UTC = timezone.utc


class FakeClock:
    """Deterministic clock returning epoch seconds."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def at(self, offset: float = 0.0) -> datetime:
        return datetime.fromtimestamp(self.now + offset, tz=UTC)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def make_logger(clock: FakeClock):
    """Build isolated SecurityLogger instances and close them afterwards."""
    created: List[SecurityLogger] = []

    def factory(**overrides) -> SecurityLogger:
        overrides.setdefault("cleanup_interval_seconds", 0)
        options = {}
        for key in ("detectors", "audit_store"):
            if key in overrides:
                options[key] = overrides.pop(key)
        instance = SecurityLogger(overrides, clock=clock, **options)
        created.append(instance)
        return instance

    yield factory

    for instance in created:
        instance.close()


@pytest.fixture(autouse=True)
def _reset_shared_logger():
    reset_for_testing()
    yield
    reset_for_testing()


@pytest.fixture()
def capture(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    caplog.set_level(logging.DEBUG)
    return caplog


def security_lines(caplog: pytest.LogCaptureFixture) -> List[str]:
    return [r.getMessage() for r in caplog.records if r.name == SECURITY_LOGGER_NAME]


def security_records(caplog: pytest.LogCaptureFixture) -> List[logging.LogRecord]:
    return [r for r in caplog.records if r.name == SECURITY_LOGGER_NAME]


def internal_errors(caplog: pytest.LogCaptureFixture) -> List[logging.LogRecord]:
    return [
        r
        for r in caplog.records
        if r.name == INTERNAL_LOGGER_NAME and r.levelno >= logging.ERROR
    ]
