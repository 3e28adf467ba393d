from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from authwatch.events.models import BaseSecurityEvent, Severity
from authwatch.logging.internal import report_internal_error

from .classifier import classify
from .detectors import SUSPICIOUS_ACTIVITY, UNUSUAL_USER_AGENT, Detector, Finding, default_detectors
from .tracker import ActivityTracker


@dataclass(frozen=True)
class DetectionResult:
    """Outcome of running one event through classification and detection."""

    event: BaseSecurityEvent
    severity: Severity
    findings: List[Finding] = field(default_factory=list)

    @property
    def suspicious(self) -> List[Finding]:
        return [f for f in self.findings if f.kind == SUSPICIOUS_ACTIVITY]

    @property
    def unusual_agents(self) -> List[Finding]:
        return [f for f in self.findings if f.kind == UNUSUAL_USER_AGENT]

    @property
    def annotations(self) -> List[str]:
        return [f.message for f in self.findings]


class DetectionPipeline:
    """Classify, update the tracker, then run each detector in isolation."""

    def __init__(self, tracker: ActivityTracker, detectors: Optional[Sequence[Detector]] = None):
        self.tracker = tracker
        self.detectors: List[Detector] = (
            list(detectors) if detectors is not None else default_detectors()
        )

    def process(self, event: BaseSecurityEvent) -> DetectionResult:
        severity = classify(event)
        self.tracker.update(event)

        findings: List[Finding] = []
        for detector in self.detectors:
            try:
                findings.extend(detector.evaluate(event, self.tracker))
            except Exception as exc:
                report_internal_error(f"Detector {detector.name!r} failed", exc)

        return DetectionResult(event=event, severity=severity, findings=findings)
