from __future__ import annotations

import authwatch
from authwatch import LoginFailure, get_logger, reset_for_testing

from conftest import internal_errors, security_lines

QUIET = {"cleanup_interval_seconds": 0, "log_to_file": False}


def test_get_logger_returns_same_instance():
    first = get_logger(QUIET)
    second = get_logger({"log_level": "critical"})

    assert first is second
    assert second.config.log_level.value == "low"


def test_reset_discards_accumulated_state():
    security = get_logger({**QUIET, "suspicious_activity_thresholds": {"max_failed_attempts_per_ip": 1}})
    security.record(LoginFailure(ip_address="10.0.0.1", user_agent="Mozilla/5.0", username="alice"))
    assert security.is_suspicious_ip("10.0.0.1") is True

    reset_for_testing()
    fresh = get_logger(QUIET)

    assert fresh is not security
    assert fresh.get_stats().is_empty()
    assert fresh.is_suspicious_ip("10.0.0.1") is False


def test_get_logger_reads_environment_defaults(monkeypatch):
    monkeypatch.setenv("AUTHWATCH_MAX_FAILED_PER_IP", "2")
    monkeypatch.setenv("AUTHWATCH_ENV", "staging")

    security = get_logger(QUIET)

    assert security.config.suspicious_activity_thresholds.max_failed_attempts_per_ip == 2
    assert security.config.environment == "staging"


def test_module_level_helpers_use_shared_instance(capture):
    get_logger({**QUIET, "suspicious_activity_thresholds": {"max_failed_attempts_per_user": 1}})

    authwatch.record_security_event(
        LoginFailure(ip_address="10.0.0.5", user_agent="Mozilla/5.0", username="erin")
    )

    assert authwatch.is_suspicious_user("erin") is True
    assert authwatch.is_suspicious_ip("10.0.0.5") is False
    assert authwatch.get_security_stats().failed_logins_by_user == {"erin": 1}
    assert any(line.startswith("[SECURITY:MEDIUM] login_failure") for line in security_lines(capture))


def test_record_security_event_tolerates_unknown_log_level(monkeypatch, capture):
    monkeypatch.setenv("AUTHWATCH_LOG_LEVEL", "warning")

    authwatch.record_security_event(
        LoginFailure(ip_address="10.0.0.6", user_agent="Mozilla/5.0", username="frank")
    )

    assert get_logger().config.log_level.value == "low"
    assert authwatch.get_security_stats().failed_logins_by_user == {"frank": 1}
    assert any("AUTHWATCH_LOG_LEVEL" in r.getMessage() for r in capture.records)


def test_record_security_event_never_raises_on_invalid_environment(monkeypatch, capture):
    monkeypatch.setenv("AUTHWATCH_MAX_LOG_FILES", "0")

    authwatch.record_security_event(
        LoginFailure(ip_address="10.0.0.6", user_agent="Mozilla/5.0", username="frank")
    )

    errors = internal_errors(capture)
    assert len(errors) == 1
    assert "Failed to log security event" in errors[0].getMessage()
