"""Tests for settings loading, structured logging renderers and the logging sink."""

from __future__ import annotations

import io

import orjson
import pytest
from pydantic import ValidationError

from tryagain.foundation.config import RetrySettings, get_settings
from tryagain.foundation.errors import AttemptRecord, FailureReport, RetryExhausted, TerminationReason
from tryagain.runtime.observability import (
    ConsoleRenderer,
    JsonRenderer,
    LogEntry,
    MemoryRenderer,
    NoOpRenderer,
    configure_from_settings,
    configure_logging,
    get_logger,
    log_context,
    set_renderer,
)
from tryagain.runtime.retry import LoggingSink, RetryLoop


def _report() -> FailureReport[str, RetryExhausted]:
    history = (AttemptRecord("timeout", 1.0), AttemptRecord("reset", 2.0))
    return FailureReport(history, RetryExhausted.from_history(history), TerminationReason.GAVE_UP)


# ═════════════════════════════════════════════════════════════════════════════
# Settings
# ═════════════════════════════════════════════════════════════════════════════


def test_default_settings() -> None:
    settings = get_settings()
    assert settings.retry.strategy == "exponential"
    assert settings.retry.max_attempts == 5
    assert settings.sink_timeout == 5.0
    assert settings.logging.format == "console"


def test_settings_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TRYAGAIN_SINK_TIMEOUT", "2.5")
    monkeypatch.setenv("TRYAGAIN_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("TRYAGAIN_RETRY_MAX_ELAPSED", "60")
    
    settings = get_settings()
    assert settings.sink_timeout == 2.5
    assert settings.logging.level == "DEBUG"
    assert settings.retry.max_elapsed == 60.0
    assert RetryLoop().sink_timeout == 2.5


def test_settings_reject_unbounded_retry() -> None:
    with pytest.raises(ValidationError):
        RetrySettings(max_attempts=None, max_elapsed=None)


def test_settings_reject_shrinking_multiplier() -> None:
    with pytest.raises(ValidationError):
        RetrySettings(multiplier=0.5)


# ═════════════════════════════════════════════════════════════════════════════
# Logger & Renderers
# ═════════════════════════════════════════════════════════════════════════════


def test_bound_context_merges(captured_logs: MemoryRenderer) -> None:
    log = get_logger("svc", region="eu").bind(run=3)
    with log_context(request_id="abc"):
        log.info("attempt", n=1)
    log.info("after")
    
    first, second = captured_logs.entries
    assert first.context == {"logger": "svc", "region": "eu", "run": 3, "request_id": "abc", "n": 1}
    assert "request_id" not in second.context


def test_level_filtering(captured_logs: MemoryRenderer) -> None:
    set_renderer(captured_logs, level="WARNING")
    log = get_logger()
    log.info("hidden")
    log.warning("shown")
    assert captured_logs.events() == ["shown"]


def test_console_renderer_output() -> None:
    buf = io.StringIO()
    configure_logging("console", output=buf, colors=False)
    get_logger("tryagain.retry").warning("gave up", attempts=3)
    line = buf.getvalue()
    assert "[warning] gave up" in line
    assert "attempts=3" in line
    assert 'logger="tryagain.retry"' in line


def test_json_renderer_output() -> None:
    buf = io.StringIO()
    JsonRenderer(output=buf).render(LogEntry(0.0, "error", "retry run failed", {"attempts": 2}))
    payload = orjson.loads(buf.getvalue())
    assert payload["event"] == "retry run failed"
    assert payload["attempts"] == 2
    assert payload["timestamp"].startswith("1970-01-01")


def test_unconfigured_logging_follows_settings(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setenv("TRYAGAIN_LOG_FORMAT", "json")
    monkeypatch.setenv("TRYAGAIN_LOG_LEVEL", "WARNING")
    set_renderer(None)

    log = get_logger("tryagain.retry")
    log.info("retry scheduled", attempt=1)
    log.warning("gave up", attempts=3)

    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 1
    payload = orjson.loads(lines[0])
    assert payload["event"] == "gave up"
    assert payload["level"] == "warning"
    assert payload["logger"] == "tryagain.retry"


def test_configure_from_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TRYAGAIN_LOG_FORMAT", "none")
    assert isinstance(configure_from_settings(), NoOpRenderer)


def test_configure_logging_rejects_unknown_format() -> None:
    with pytest.raises(ValueError):
        configure_logging("xml")


def test_console_renderer_auto_colors_off_for_non_tty() -> None:
    assert ConsoleRenderer(output=io.StringIO()).colors is False


# ═════════════════════════════════════════════════════════════════════════════
# LoggingSink
# ═════════════════════════════════════════════════════════════════════════════


def test_logging_sink_writes_history_then_summary(captured_logs: MemoryRenderer) -> None:
    LoggingSink()(_report())
    
    assert captured_logs.events("warning") == ["recoverable failure", "recoverable failure"]
    assert captured_logs.events("error") == ["retry run failed"]
    summary = captured_logs.entries[-1].context
    assert summary["reason"] == "gave_up"
    assert summary["recoverable_failures"] == 2
    assert summary["first_failure_at"] == 1.0 and summary["last_failure_at"] == 2.0
    assert captured_logs.entries[0].context["failure"] == "1/2"


def test_logging_sink_summary_only(captured_logs: MemoryRenderer) -> None:
    LoggingSink(log_history=False)(_report())
    assert captured_logs.events() == ["retry run failed"]


def test_report_attempt_count_by_reason() -> None:
    history = (AttemptRecord("busy", 0.0),)
    assert FailureReport(history, "x", TerminationReason.FATAL).attempts == 2
    assert FailureReport(history, "x", TerminationReason.GAVE_UP).attempts == 1
