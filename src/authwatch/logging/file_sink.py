from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .internal import report_internal_error
from .writer import WriteBatch

logger = logging.getLogger(__name__)

LOG_FILE_PREFIX = "security-"
LOG_FILE_SUFFIX = ".log"


class RotatingFileSink:
    """Newline-delimited JSON files, one per UTC day, rotated by size.

    The active file is ``security-YYYY-MM-DD.log``. When the next batch would
    push it past ``max_file_size`` it is renamed to
    ``security-YYYY-MM-DD.<epoch-ms>.log`` before the batch is appended, and
    retention is enforced whenever a new active file is started (after a
    rotation or on a new UTC day).
    """

    def __init__(
        self,
        directory: Path,
        max_file_size: int,
        max_files: int,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.directory = Path(directory)
        self.max_file_size = max_file_size
        self.max_files = max_files
        self.clock = clock or time.time

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self.clock(), tz=timezone.utc)

    def active_path(self) -> Path:
        return self.directory / f"{LOG_FILE_PREFIX}{self._now():%Y-%m-%d}{LOG_FILE_SUFFIX}"

    def write_lines(self, lines: Sequence[str]) -> bool:
        """Append ``lines`` as one batch. Returns False if the batch was dropped."""
        if not lines:
            return True
        data = "".join(line + "\n" for line in lines)
        size_needed = len(data.encode("utf-8"))

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            report_internal_error(f"Failed to create log directory {self.directory}", exc)
            return False

        path = self.active_path()
        created = False
        try:
            current_size = path.stat().st_size
        except FileNotFoundError:
            current_size = 0
            created = True
        except OSError as exc:
            report_internal_error(f"Failed to stat log file {path}", exc)
            return False

        rotated = False
        if current_size > 0 and current_size + size_needed > self.max_file_size:
            if self.rotate(path) is None:
                return False
            rotated = True

        try:
            with path.open("a", encoding="utf-8") as handle:
                handle.write(data)
        except OSError as exc:
            report_internal_error(f"Failed to write to log file {path}", exc)
            return False

        if rotated or created:
            self.cleanup_old_log_files()
        return True

    def _rotated_path(self, path: Path) -> Path:
        stem = path.name[: -len(LOG_FILE_SUFFIX)]
        stamp = int(self.clock() * 1000)
        candidate = path.with_name(f"{stem}.{stamp}{LOG_FILE_SUFFIX}")
        counter = 1
        while candidate.exists():
            candidate = path.with_name(f"{stem}.{stamp}.{counter}{LOG_FILE_SUFFIX}")
            counter += 1
        return candidate

    def rotate(self, path: Optional[Path] = None) -> Optional[Path]:
        """Move the active file aside. Returns the rotated path, or None on failure."""
        path = path or self.active_path()
        target = self._rotated_path(path)
        try:
            path.rename(target)
        except OSError as exc:
            report_internal_error(f"Failed to rotate log file {path}", exc)
            return None
        logger.debug("Rotated security log %s -> %s", path, target)
        return target

    def log_files(self) -> List[Path]:
        return [
            p
            for p in self.directory.iterdir()
            if p.is_file() and p.name.startswith(LOG_FILE_PREFIX) and p.name.endswith(LOG_FILE_SUFFIX)
        ]

    def cleanup_old_log_files(self) -> List[Path]:
        """Delete the oldest log files (by mtime) beyond ``max_files``.

        Returns the paths actually removed.
        """
        try:
            files = self.log_files()
        except OSError as exc:
            report_internal_error("Failed to cleanup old log files", exc)
            return []

        if len(files) <= self.max_files:
            return []

        aged = []
        for path in files:
            try:
                aged.append((path.stat().st_mtime, path.name, path))
            except OSError as exc:
                report_internal_error(f"Failed to stat log file {path}", exc)
        aged.sort()

        removed: List[Path] = []
        excess = len(aged) - self.max_files
        for _, _, path in aged[:excess]:
            try:
                path.unlink()
            except OSError as exc:
                report_internal_error(f"Failed to delete old log file {path}", exc)
                continue
            removed.append(path)

        if removed:
            logger.info("Removed %s old security log file(s)", len(removed))
        return removed

    def write_batch(self, batch: WriteBatch) -> None:
        self.write_lines(batch.lines)
