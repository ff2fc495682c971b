"""LogAnalyzer: debugging insights for captured log lines.

Uses the writer capability through the shared SessionPool and falls back to
FallbackAnalyzer.diagnose_log whenever the model cannot answer usefully.
"""

from __future__ import annotations

import logging
import re
from collections import Counter

from inkwell.analysis.fallback import FallbackAnalyzer, extract_error_type
from inkwell.capabilities.registry import CapabilityRegistry
from inkwell.core.types import SessionOptions
from inkwell.models.capability import CapabilityKind, Origin
from inkwell.models.logs import LogEntry, LogInsight
from inkwell.pool.session_pool import SessionPool

logger = logging.getLogger(__name__)

WRITER_OPTIONS: SessionOptions = {
    "tone": "neutral",
    "format": "plain-text",
    "length": "short",
    "shared_context": (
        "You are a debugging assistant. Analyze any log output, bug, performance issue, "
        "warning, or unexpected behavior. Provide actionable insights. Be concise and specific."
    ),
}

LOG_PROMPT = """Analyze this debugging output and provide insights:

Log Level: {level}
Output: {message}
Location: {location}

Provide: 1) What's happening 2) Potential issues or root cause 3) Actionable next steps for debugging
Be concise - max 3 sentences."""

MAX_SUMMARY_CHARS = 200
MIN_USEFUL_CHARS = 10
RECURRING_AFTER = 2
_WHITESPACE = re.compile(r"\s+")

_SEVERITY_BY_LEVEL = {"error": "error", "warn": "warning"}


class LogAnalyzer:
    """Model-backed log diagnosis with recurring-error tracking."""

    def __init__(
        self,
        *,
        registry: CapabilityRegistry,
        pool: SessionPool,
        fallback: FallbackAnalyzer,
    ) -> None:
        self._registry = registry
        self._pool = pool
        self._fallback = fallback
        self._error_counts: Counter[str] = Counter()

    async def analyze(self, entry: LogEntry) -> LogInsight:
        occurrences = self._track(entry)
        insight = await self._model_insight(entry)
        if insight is None:
            insight = self._fallback.diagnose_log(entry)
        insight.occurrences = occurrences
        insight.recurring = occurrences > RECURRING_AFTER
        return insight

    def error_patterns(self) -> dict[str, int]:
        """Occurrence counts keyed by ``location:ErrorType``."""
        return dict(self._error_counts)

    def clear_error_patterns(self) -> None:
        self._error_counts.clear()

    def _track(self, entry: LogEntry) -> int:
        if entry.level != "error" or not entry.file:
            return 1
        key = f"{entry.location}:{extract_error_type(entry.message)}"
        self._error_counts[key] += 1
        return self._error_counts[key]

    async def _model_insight(self, entry: LogEntry) -> LogInsight | None:
        kind = CapabilityKind.WRITER
        await self._registry.probe()
        if not self._registry.is_ready(kind):
            return None

        prompt = LOG_PROMPT.format(level=entry.level, message=entry.message, location=entry.location)
        stack_context = f"Stack trace: {entry.stack[:200] or 'none'}"
        try:
            async with self._pool.session(kind, WRITER_OPTIONS) as handle:
                if handle is None:
                    return None
                response = await handle.session.invoke(prompt, stack_context)
        except Exception as exc:
            logger.debug("Writer analysis failed: %s", exc)
            return None

        summary = _WHITESPACE.sub(" ", str(response or "")).strip()[:MAX_SUMMARY_CHARS].strip()
        if len(summary) < MIN_USEFUL_CHARS:
            return None

        return LogInsight(
            summary=summary,
            severity=_SEVERITY_BY_LEVEL.get(entry.level, "info"),
            origin=Origin.MODEL,
            location=entry.location,
            error_type=extract_error_type(entry.message),
        )
