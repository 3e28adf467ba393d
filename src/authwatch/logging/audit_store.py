from __future__ import annotations

import logging
import threading
from typing import List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from authwatch.db.base import Base, get_engine
from authwatch.db.models import SecurityAuditRecord

from .formatting import LogEntry
from .internal import report_internal_error
from .writer import WriteBatch

logger = logging.getLogger(__name__)


class AuditStore:
    """Persists structured security records to the ``security_audit_records`` table."""

    def __init__(self, engine: Optional[Engine] = None, database_url: Optional[str] = None):
        self.engine = engine or get_engine(database_url)
        self.session_factory = sessionmaker(
            bind=self.engine, autocommit=False, autoflush=False, future=True
        )
        self._schema_ready = False
        self._schema_lock = threading.Lock()

    def _ensure_schema(self) -> None:
        if self._schema_ready:
            return
        with self._schema_lock:
            if not self._schema_ready:
                Base.metadata.create_all(bind=self.engine, tables=[SecurityAuditRecord.__table__])
                self._schema_ready = True

    @staticmethod
    def to_row(entry: LogEntry) -> SecurityAuditRecord:
        event = entry.event
        return SecurityAuditRecord(
            event_id=entry.event_id,
            kind=entry.kind,
            event_type=event.event_type.value,
            severity=entry.severity.value,
            ip_address=event.ip_address,
            user_agent=event.user_agent,
            user_id=event.user_id,
            environment=entry.record.get("environment", ""),
            observed_at=event.timestamp,
            payload=entry.record,
        )

    def write_entries(self, entries: List[LogEntry]) -> bool:
        if not entries:
            return True
        try:
            self._ensure_schema()
            with self.session_factory() as session:
                session.add_all([self.to_row(entry) for entry in entries])
                session.commit()
        except SQLAlchemyError as exc:
            report_internal_error("Failed to persist security audit records", exc)
            return False
        logger.debug("Persisted %s security audit record(s)", len(entries))
        return True

    def write_batch(self, batch: WriteBatch) -> None:
        self.write_entries(batch.entries)
