from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

from authwatch.config.settings import SuspiciousActivityThresholds
from authwatch.events.models import BaseSecurityEvent, EventType, username_of

Clock = Callable[[], float]

UTC = timezone.utc


@dataclass(frozen=True)
class SecurityStats:
    """In-window bucket sizes. Never exposes raw timestamps."""

    failed_logins_by_ip: Dict[str, int] = field(default_factory=dict)
    failed_logins_by_user: Dict[str, int] = field(default_factory=dict)
    token_invalidations_by_ip: Dict[str, int] = field(default_factory=dict)
    last_cleanup: datetime = field(default_factory=lambda: datetime.now(UTC))

    def is_empty(self) -> bool:
        return not (
            self.failed_logins_by_ip or self.failed_logins_by_user or self.token_invalidations_by_ip
        )


class ActivityBuckets:
    """Keyed, ordered timestamp buckets for one kind of occurrence."""

    def __init__(self) -> None:
        self._buckets: Dict[str, List[float]] = {}

    def append(self, key: str, timestamp: float, cutoff: float) -> None:
        bucket = [ts for ts in self._buckets.get(key, []) if ts > cutoff]
        bucket.append(timestamp)
        bucket.sort()
        self._buckets[key] = bucket

    def count_since(self, key: str, cutoff: float) -> int:
        return sum(1 for ts in self._buckets.get(key, ()) if ts > cutoff)

    def recent_since(self, key: str, cutoff: float, limit: int) -> List[float]:
        in_window = [ts for ts in self._buckets.get(key, ()) if ts > cutoff]
        return in_window[-limit:]

    def counts_since(self, cutoff: float) -> Dict[str, int]:
        counts = {key: self.count_since(key, cutoff) for key in self._buckets}
        return {key: count for key, count in counts.items() if count > 0}

    def prune(self, cutoff: float) -> int:
        """Drop timestamps at or before ``cutoff``; return the number of emptied buckets."""
        removed = 0
        for key in list(self._buckets):
            kept = [ts for ts in self._buckets[key] if ts > cutoff]
            if kept:
                self._buckets[key] = kept
            else:
                del self._buckets[key]
                removed += 1
        return removed

    def keys(self) -> List[str]:
        return list(self._buckets)

    def timestamps(self, key: str) -> Tuple[float, ...]:
        return tuple(self._buckets.get(key, ()))


class ActivityTracker:
    """Sliding-window counters of failed logins and token invalidations.

    Not synchronized; the owning SecurityLogger serializes access.
    """

    def __init__(
        self,
        thresholds: Optional[SuspiciousActivityThresholds] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.thresholds = thresholds or SuspiciousActivityThresholds()
        self.clock: Clock = clock or time.time
        self.failed_logins_by_ip = ActivityBuckets()
        self.failed_logins_by_user = ActivityBuckets()
        self.token_invalidations_by_ip = ActivityBuckets()
        self.last_cleanup: float = self.clock()

    def _cutoff(self, now: Optional[float] = None) -> float:
        if now is None:
            now = self.clock()
        return now - self.thresholds.time_window_seconds

    def update(self, event: BaseSecurityEvent) -> bool:
        """Record ``event`` if it is a tracked kind. Returns whether anything changed."""
        timestamp = event.timestamp.timestamp()
        cutoff = self._cutoff()

        if event.event_type is EventType.LOGIN_FAILURE:
            self.failed_logins_by_ip.append(event.ip_address, timestamp, cutoff)
            username = username_of(event)
            if username:
                self.failed_logins_by_user.append(username, timestamp, cutoff)
            return True

        if event.event_type is EventType.TOKEN_INVALID:
            self.token_invalidations_by_ip.append(event.ip_address, timestamp, cutoff)
            return True

        return False

    def failed_logins_for_ip(self, ip_address: str) -> int:
        return self.failed_logins_by_ip.count_since(ip_address, self._cutoff())

    def failed_logins_for_user(self, username: str) -> int:
        return self.failed_logins_by_user.count_since(username, self._cutoff())

    def token_invalidations_for_ip(self, ip_address: str) -> int:
        return self.token_invalidations_by_ip.count_since(ip_address, self._cutoff())

    def recent_failures(self, ip_address: str, limit: int) -> List[float]:
        """Last ``limit`` in-window failure timestamps for an IP, oldest first."""
        return self.failed_logins_by_ip.recent_since(ip_address, self._cutoff(), limit)

    def is_suspicious_ip(self, ip_address: str) -> bool:
        return (
            self.failed_logins_for_ip(ip_address) >= self.thresholds.max_failed_attempts_per_ip
            or self.token_invalidations_for_ip(ip_address)
            >= self.thresholds.max_token_invalidations_per_ip
        )

    def is_suspicious_user(self, username: str) -> bool:
        return self.failed_logins_for_user(username) >= self.thresholds.max_failed_attempts_per_user

    def cleanup(self, now: Optional[float] = None) -> int:
        """Discard out-of-window timestamps and empty buckets.

        Returns the number of buckets removed.
        """
        if now is None:
            now = self.clock()
        cutoff = self._cutoff(now)
        removed = (
            self.failed_logins_by_ip.prune(cutoff)
            + self.failed_logins_by_user.prune(cutoff)
            + self.token_invalidations_by_ip.prune(cutoff)
        )
        self.last_cleanup = now
        return removed

    def stats(self) -> SecurityStats:
        cutoff = self._cutoff()
        return SecurityStats(
            failed_logins_by_ip=self.failed_logins_by_ip.counts_since(cutoff),
            failed_logins_by_user=self.failed_logins_by_user.counts_since(cutoff),
            token_invalidations_by_ip=self.token_invalidations_by_ip.counts_since(cutoff),
            last_cleanup=datetime.fromtimestamp(self.last_cleanup, tz=UTC),
        )
