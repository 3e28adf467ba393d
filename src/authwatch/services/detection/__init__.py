from .classifier import classify, log_level_for
from .detectors import (
    RAPID_ATTEMPTS_MESSAGE,
    SUSPICIOUS_ACTIVITY,
    UNUSUAL_USER_AGENT,
    Detector,
    Finding,
    RapidSuccessionDetector,
    ThresholdDetector,
    UnusualUserAgentDetector,
    default_detectors,
)
from .pipeline import DetectionPipeline, DetectionResult
from .tracker import ActivityBuckets, ActivityTracker, Clock, SecurityStats

__all__ = [
    "ActivityBuckets",
    "ActivityTracker",
    "Clock",
    "DetectionPipeline",
    "DetectionResult",
    "Detector",
    "Finding",
    "RAPID_ATTEMPTS_MESSAGE",
    "RapidSuccessionDetector",
    "SUSPICIOUS_ACTIVITY",
    "SecurityStats",
    "ThresholdDetector",
    "UNUSUAL_USER_AGENT",
    "UnusualUserAgentDetector",
    "classify",
    "default_detectors",
    "log_level_for",
]
