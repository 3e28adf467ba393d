from __future__ import annotations

import logging
import secrets
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence

from authwatch.config.settings import ConfigInput, LoggerConfig, merge_config
from authwatch.events.models import BaseSecurityEvent, SuspiciousActivity, details
from authwatch.logging.audit_store import AuditStore
from authwatch.logging.console import ConsoleSink
from authwatch.logging.file_sink import RotatingFileSink
from authwatch.logging.formatting import (
    LogEntry,
    build_record,
    render_console_line,
    serialize_record,
)
from authwatch.logging.internal import report_internal_error
from authwatch.logging.writer import BackgroundWriter, BatchTarget, WriteBatch

from .detection.classifier import classify, log_level_for
from .detection.detectors import UNUSUAL_USER_AGENT, Detector, default_detectors
from .detection.pipeline import DetectionPipeline, DetectionResult
from .detection.tracker import ActivityTracker, Clock, SecurityStats

logger = logging.getLogger(__name__)

UTC = timezone.utc

PRIMARY = "event"


def new_event_id(clock: Clock) -> str:
    return f"sec_{int(clock() * 1000)}_{secrets.token_hex(4)}"


class SecurityLogger:
    """Ingests security events, tracks abuse signals and writes audit output.

    One instance is meant to live for the whole process; build it in the
    application's composition root (or use ``get_logger``) and call
    ``close()`` on shutdown.
    """

    def __init__(
        self,
        config: ConfigInput = None,
        *,
        clock: Optional[Clock] = None,
        detectors: Optional[Sequence[Detector]] = None,
        console_logger: Optional[logging.Logger] = None,
        audit_store: Optional[AuditStore] = None,
    ):
        self.config: LoggerConfig = merge_config(config)
        self.clock: Clock = clock or time.time
        self._lock = threading.RLock()

        self.tracker = ActivityTracker(self.config.suspicious_activity_thresholds, self.clock)
        if detectors is None:
            detectors = default_detectors(self.config.rapid_succession)
        self.pipeline = DetectionPipeline(self.tracker, detectors)
        self.console = ConsoleSink(console_logger)

        targets: List[BatchTarget] = []
        self.file_sink: Optional[RotatingFileSink] = None
        if self.config.log_to_file:
            self.file_sink = RotatingFileSink(
                self.config.log_directory,
                max_file_size=self.config.max_log_file_size,
                max_files=self.config.max_log_files,
                clock=self.clock,
            )
            targets.append(self.file_sink)

        self.audit_store: Optional[AuditStore] = None
        if self.config.log_to_database:
            self.audit_store = audit_store or AuditStore(
                database_url=self.config.resolved_database_url()
            )
            targets.append(self.audit_store)

        self.writer: Optional[BackgroundWriter] = None
        if targets:
            self.writer = BackgroundWriter(targets, max_queue=self.config.writer_queue_size)

        self._stop = threading.Event()
        self._sweeper: Optional[threading.Thread] = None
        if self.config.cleanup_interval_seconds > 0:
            self._sweeper = threading.Thread(
                target=self._sweep_forever, name="authwatch-sweeper", daemon=True
            )
            self._sweeper.start()

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------
    def record(self, event: BaseSecurityEvent) -> None:
        """Ingest one event. Never raises; failures go to the internal channel."""
        try:
            self._record(event)
        except Exception as exc:
            report_internal_error("Failed to log security event", exc)

    def _record(self, event: BaseSecurityEvent) -> None:
        with self._lock:
            result = self.pipeline.process(event)

        entries = [
            entry
            for entry in self._build_entries(result)
            if entry.severity.at_least(self.config.log_level)
        ]
        if not entries:
            return

        if self.config.log_to_console:
            self._emit_console(entries)
        if self.writer is not None:
            self._enqueue(entries)

    def _build_entries(self, result: DetectionResult) -> List[LogEntry]:
        event = result.event
        event_id = new_event_id(self.clock)
        logged_at = datetime.fromtimestamp(self.clock(), tz=UTC)
        environment = self.config.environment

        fields = details(event)
        if event.user_id:
            fields["user_id"] = event.user_id
        fields["id"] = event_id

        entries = [
            LogEntry(
                kind=PRIMARY,
                event_id=event_id,
                severity=result.severity,
                level=log_level_for(result.severity),
                event=event,
                line=render_console_line(
                    event.event_type.value, result.severity, event.ip_address, event.user_agent, fields
                ),
                record=build_record(
                    kind=PRIMARY,
                    event_id=event_id,
                    severity=result.severity,
                    event=event,
                    environment=environment,
                    logged_at=logged_at,
                    annotations=result.annotations,
                ),
            )
        ]

        for finding in result.unusual_agents:
            entries.append(
                LogEntry(
                    kind=UNUSUAL_USER_AGENT,
                    event_id=event_id,
                    severity=finding.severity,
                    level=logging.WARNING,
                    event=event,
                    line=render_console_line(
                        UNUSUAL_USER_AGENT,
                        finding.severity,
                        event.ip_address,
                        event.user_agent,
                        {"message": finding.message, "trigger_event_id": event_id},
                    ),
                    record=build_record(
                        kind=UNUSUAL_USER_AGENT,
                        event_id=event_id,
                        severity=finding.severity,
                        event=event,
                        environment=environment,
                        logged_at=logged_at,
                        annotations=[finding.message],
                        detector=finding.detector,
                    ),
                )
            )

        suspicious = result.suspicious
        if suspicious:
            synthesized = SuspiciousActivity(
                ip_address=event.ip_address,
                user_agent=event.user_agent,
                timestamp=event.timestamp,
                user_id=event.user_id,
                findings=[finding.message for finding in suspicious],
                trigger_event_id=event_id,
                trigger_type=event.event_type.value,
            )
            severity = classify(synthesized)
            synthesized_id = new_event_id(self.clock)
            synthesized_fields = details(synthesized)
            synthesized_fields["id"] = synthesized_id
            entries.append(
                LogEntry(
                    kind=synthesized.type,
                    event_id=synthesized_id,
                    severity=severity,
                    level=log_level_for(severity),
                    event=synthesized,
                    line=render_console_line(
                        synthesized.type,
                        severity,
                        synthesized.ip_address,
                        synthesized.user_agent,
                        synthesized_fields,
                    ),
                    record=build_record(
                        kind=synthesized.type,
                        event_id=synthesized_id,
                        severity=severity,
                        event=synthesized,
                        environment=environment,
                        logged_at=logged_at,
                        annotations=list(synthesized.findings),
                        detectors=sorted({finding.detector for finding in suspicious}),
                    ),
                )
            )

        return entries

    def _emit_console(self, entries: List[LogEntry]) -> None:
        try:
            for entry in entries:
                self.console.emit(entry)
        except Exception as exc:
            report_internal_error("Failed to write security event to console", exc)

    def _enqueue(self, entries: List[LogEntry]) -> None:
        try:
            lines = [serialize_record(entry.record) for entry in entries]
        except (TypeError, ValueError) as exc:
            report_internal_error("Failed to serialize security event", exc)
            return
        self.writer.submit(WriteBatch(entries=entries, lines=lines))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def is_suspicious_ip(self, ip_address: str) -> bool:
        with self._lock:
            return self.tracker.is_suspicious_ip(ip_address)

    def is_suspicious_user(self, username: str) -> bool:
        with self._lock:
            return self.tracker.is_suspicious_user(username)

    def get_stats(self) -> SecurityStats:
        with self._lock:
            return self.tracker.stats()

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------
    def cleanup_old_activity(self) -> int:
        """Sweep out-of-window activity now. Returns the number of buckets removed."""
        with self._lock:
            removed = self.tracker.cleanup()
        if removed:
            logger.debug("Activity sweep removed %s empty bucket(s)", removed)
        return removed

    def cleanup_old_log_files(self) -> List[Path]:
        if self.file_sink is None:
            return []
        return self.file_sink.cleanup_old_log_files()

    def _sweep_forever(self) -> None:
        interval = self.config.cleanup_interval_seconds
        while not self._stop.wait(interval):
            try:
                self.cleanup_old_activity()
            except Exception as exc:
                report_internal_error("Periodic activity cleanup failed", exc)

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait for queued file/database writes to finish."""
        if self.writer is None:
            return True
        return self.writer.flush(timeout)

    def close(self) -> None:
        self._stop.set()
        if self._sweeper is not None:
            self._sweeper.join(timeout=1.0)
        if self.writer is not None:
            self.writer.close()


_instance: Optional[SecurityLogger] = None
_instance_lock = threading.Lock()


def get_logger(config: ConfigInput = None) -> SecurityLogger:
    """Return the process-wide SecurityLogger, building it on first use.

    ``config`` is merged over the environment-derived defaults the first time
    only; later calls ignore it until ``reset_for_testing()`` discards the
    instance.
    """
    global _instance
    with _instance_lock:
        if _instance is None:
            if not isinstance(config, LoggerConfig):
                config = merge_config(config, base=LoggerConfig.from_env())
            _instance = SecurityLogger(config)
            logger.info("Security logger initialised (environment=%s)", _instance.config.environment)
        return _instance


def reset_for_testing() -> None:
    """Discard the shared instance and all of its accumulated state."""
    global _instance
    with _instance_lock:
        instance, _instance = _instance, None
    if instance is not None:
        instance.close()


def record_security_event(event: BaseSecurityEvent) -> None:
    """Record ``event`` on the shared instance. Never raises, even if building it fails."""
    try:
        security = get_logger()
    except Exception as exc:
        report_internal_error("Failed to log security event", exc)
        return
    security.record(event)


def is_suspicious_ip(ip_address: str) -> bool:
    return get_logger().is_suspicious_ip(ip_address)


def is_suspicious_user(username: str) -> bool:
    return get_logger().is_suspicious_user(username)


def get_security_stats() -> SecurityStats:
    return get_logger().get_stats()
