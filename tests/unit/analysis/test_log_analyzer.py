"""Tests for LogAnalyzer model path, fallback, and recurring-error tracking."""

from __future__ import annotations

import pytest

from inkwell.analysis.fallback import FallbackAnalyzer
from inkwell.analysis.log_analyzer import MAX_SUMMARY_CHARS, WRITER_OPTIONS, LogAnalyzer
from inkwell.capabilities.registry import CapabilityRegistry
from inkwell.models.capability import Availability, CapabilityKind, Origin
from inkwell.models.logs import LogEntry
from inkwell.pool.session_pool import SessionPool
from tests.fakes import MockCapabilityBackend

WRITER = CapabilityKind.WRITER

pytestmark = pytest.mark.asyncio


@pytest.fixture
def backend():
    return MockCapabilityBackend()


def _analyzer(backend) -> LogAnalyzer:
    return LogAnalyzer(
        registry=CapabilityRegistry(backend),
        pool=SessionPool(backend, acquire_timeout_ms=200),
        fallback=FallbackAnalyzer(),
    )


def _error(message: str = "TypeError: Cannot read properties of null") -> LogEntry:
    return LogEntry(message=message, level="error", file="app.js", line=42, stack="at render (app.js:42)")


async def test_model_summary_is_collapsed(backend):
    backend.set_response(WRITER, "The value   is null.\n\nAdd a guard before\tthe access.")

    insight = await _analyzer(backend).analyze(_error())

    assert insight.origin is Origin.MODEL
    assert insight.summary == "The value is null. Add a guard before the access."
    assert insight.severity == "error"
    assert insight.location == "app.js:42"
    assert insight.error_type == "TypeError"


async def test_summary_is_capped(backend):
    backend.set_response(WRITER, "word " * 100)

    insight = await _analyzer(backend).analyze(_error())

    assert len(insight.summary) <= MAX_SUMMARY_CHARS


async def test_prompt_and_options(backend):
    await _analyzer(backend).analyze(_error())

    (session,) = backend.sessions_of(WRITER)
    prompt, context = session.calls[0]
    assert session.options == WRITER_OPTIONS
    assert "Location: app.js:42" in prompt
    assert context == "Stack trace: at render (app.js:42)"


async def test_short_response_falls_back(backend):
    backend.set_response(WRITER, "ok")

    insight = await _analyzer(backend).analyze(_error())

    assert insight.origin is Origin.FALLBACK
    assert insight.summary.startswith("Null reference at app.js:42")


async def test_unavailable_writer_falls_back(backend):
    backend.set_availability(WRITER, Availability.DOWNLOADABLE)

    insight = await _analyzer(backend).analyze(
        LogEntry(message="GET /api/users 404", level="warn", file="api.js", line=7)
    )

    assert insight.origin is Origin.FALLBACK
    assert insight.severity == "warning"
    assert "api.js:7" in insight.summary
    assert backend.sessions == []


async def test_call_failure_falls_back(backend):
    backend.fail_calls = True

    insight = await _analyzer(backend).analyze(_error())

    assert insight.origin is Origin.FALLBACK


async def test_repeated_error_becomes_recurring(backend):
    analyzer = _analyzer(backend)

    insights = [await analyzer.analyze(_error()) for _ in range(3)]

    assert [i.occurrences for i in insights] == [1, 2, 3]
    assert [i.recurring for i in insights] == [False, False, True]


async def test_errors_tracked_per_location(backend):
    analyzer = _analyzer(backend)
    await analyzer.analyze(_error())

    other = await analyzer.analyze(
        LogEntry(message="TypeError: Cannot read properties of null", level="error", file="b.js", line=1)
    )

    assert other.occurrences == 1


async def test_non_errors_are_not_counted(backend):
    analyzer = _analyzer(backend)
    entry = LogEntry(message="rendering list", level="info", file="ui.js", line=3)

    for _ in range(4):
        insight = await analyzer.analyze(entry)

    assert insight.occurrences == 1
    assert not insight.recurring


async def test_error_patterns_can_be_read_and_cleared(backend):
    analyzer = _analyzer(backend)
    await analyzer.analyze(_error())
    await analyzer.analyze(_error())

    assert analyzer.error_patterns() == {"app.js:42:TypeError": 2}

    analyzer.clear_error_patterns()

    assert analyzer.error_patterns() == {}
    assert (await analyzer.analyze(_error())).occurrences == 1
