from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Pattern, Sequence

from authwatch.config.settings import RapidSuccessionSettings
from authwatch.events.models import BaseSecurityEvent, EventType, Severity, username_of

from .tracker import ActivityTracker

SUSPICIOUS_ACTIVITY = "suspicious_activity"
UNUSUAL_USER_AGENT = "unusual_user_agent"

RAPID_ATTEMPTS_MESSAGE = "Rapid successive authentication attempts detected"

DEFAULT_UNUSUAL_AGENT_PATTERNS: Sequence[str] = (
    r"^unknown$",
    # command-line HTTP tools
    r"\bcurl\b",
    r"\bwget\b",
    r"\bhttpie\b",
    # scripting-library clients
    r"python-requests",
    r"python-urllib",
    r"python-httpx",
    r"aiohttp",
    r"go-http-client",
    r"okhttp",
    r"^java/",
    r"libwww-perl",
    # generic automation
    r"bot",
    r"crawler",
    r"spider",
    r"scanner",
)


@dataclass(frozen=True)
class Finding:
    """One detector observation about an ingested event."""

    kind: str
    detector: str
    message: str
    severity: Severity


class Detector(ABC):
    """Base class for pattern detectors."""

    name: str = "detector"

    @abstractmethod
    def evaluate(self, event: BaseSecurityEvent, tracker: ActivityTracker) -> List[Finding]:
        """Inspect ``event`` (already applied to ``tracker``) and report findings."""
        pass


class ThresholdDetector(Detector):
    """Flags keys whose failure counts reached the configured thresholds."""

    name = "threshold"

    def evaluate(self, event: BaseSecurityEvent, tracker: ActivityTracker) -> List[Finding]:
        findings: List[Finding] = []

        if event.event_type is EventType.LOGIN_FAILURE:
            thresholds = tracker.thresholds
            if tracker.failed_logins_for_ip(event.ip_address) >= thresholds.max_failed_attempts_per_ip:
                findings.append(
                    self._finding(f"Excessive failed login attempts from IP: {event.ip_address}")
                )
            username = username_of(event)
            if username and tracker.is_suspicious_user(username):
                findings.append(self._finding(f"Excessive failed login attempts for user: {username}"))

        elif event.event_type is EventType.TOKEN_INVALID:
            if (
                tracker.token_invalidations_for_ip(event.ip_address)
                >= tracker.thresholds.max_token_invalidations_per_ip
            ):
                findings.append(
                    self._finding(f"Excessive token invalidation attempts from IP: {event.ip_address}")
                )

        return findings

    def _finding(self, message: str) -> Finding:
        return Finding(
            kind=SUSPICIOUS_ACTIVITY,
            detector=self.name,
            message=message,
            severity=Severity.HIGH,
        )


class RapidSuccessionDetector(Detector):
    """Flags a burst of failed logins from one IP inside a short span."""

    name = "rapid_succession"

    def __init__(self, settings: Optional[RapidSuccessionSettings] = None):
        self.settings = settings or RapidSuccessionSettings()

    def evaluate(self, event: BaseSecurityEvent, tracker: ActivityTracker) -> List[Finding]:
        if event.event_type is not EventType.LOGIN_FAILURE:
            return []

        recent = tracker.recent_failures(event.ip_address, self.settings.min_attempts)
        if len(recent) < self.settings.min_attempts:
            return []

        span_ms = (recent[-1] - recent[0]) * 1000.0
        if span_ms > self.settings.window_ms:
            return []

        return [
            Finding(
                kind=SUSPICIOUS_ACTIVITY,
                detector=self.name,
                message=RAPID_ATTEMPTS_MESSAGE,
                severity=Severity.HIGH,
            )
        ]


class UnusualUserAgentDetector(Detector):
    """Flags blank agents and known non-browser client signatures."""

    name = "unusual_user_agent"

    INSPECTED_TYPES = (EventType.LOGIN_ATTEMPT, EventType.LOGIN_FAILURE)

    def __init__(self, patterns: Optional[Sequence[str]] = None):
        source = DEFAULT_UNUSUAL_AGENT_PATTERNS if patterns is None else patterns
        self.patterns: List[Pattern[str]] = [re.compile(p, re.IGNORECASE) for p in source]

    def is_unusual(self, user_agent: Optional[str]) -> bool:
        agent = (user_agent or "").strip()
        if not agent:
            return True
        return any(pattern.search(agent) for pattern in self.patterns)

    def evaluate(self, event: BaseSecurityEvent, tracker: ActivityTracker) -> List[Finding]:
        if event.event_type not in self.INSPECTED_TYPES:
            return []
        if not self.is_unusual(event.user_agent):
            return []
        return [
            Finding(
                kind=UNUSUAL_USER_AGENT,
                detector=self.name,
                message=f"Unusual user agent detected: {event.user_agent}",
                severity=Severity.MEDIUM,
            )
        ]


def default_detectors(rapid: Optional[RapidSuccessionSettings] = None) -> List[Detector]:
    return [ThresholdDetector(), RapidSuccessionDetector(rapid), UnusualUserAgentDetector()]
