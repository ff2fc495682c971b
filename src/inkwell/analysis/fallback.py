"""Deterministic rule-based analysis used when the model backend can't be.

Nothing here touches a capability backend. Output has exactly the same
shape as model-derived output, tagged ``origin=fallback``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Sequence

from inkwell.analysis.normalize import build_suggestion
from inkwell.models.analysis import AnalysisResult, Suggestion
from inkwell.models.capability import Origin
from inkwell.models.logs import LogEntry, LogInsight

_ERROR_TYPE = re.compile(r"^(\w+Error):")


@dataclass(frozen=True)
class FallbackRule:
    """One text rule. ``replacement`` is a match template (``\\1`` etc.)."""

    pattern: re.Pattern[str]
    category: str
    message: str
    replacement: Optional[str] = None
    explanation: str = ""

    @classmethod
    def of(cls, pattern: str, category: str, message: str,
           replacement: Optional[str] = None, explanation: str = "",
           flags: int = 0) -> FallbackRule:
        return cls(re.compile(pattern, flags), category, message, replacement, explanation)


@dataclass(frozen=True)
class LogRule:
    """One log rule. ``remediation`` may reference ``{location}``."""

    pattern: re.Pattern[str]
    severity: str
    remediation: str

    @classmethod
    def of(cls, pattern: str, severity: str, remediation: str) -> LogRule:
        return cls(re.compile(pattern, re.IGNORECASE), severity, remediation)


DEFAULT_TEXT_RULES: tuple[FallbackRule, ...] = (
    FallbackRule.of(r"\bTeh\b", "spelling", "Possible misspelling of 'The'", "The"),
    FallbackRule.of(r"\bteh\b", "spelling", "Possible misspelling of 'the'", "the"),
    FallbackRule.of(r"\brecieve", "spelling", "'i' before 'e' except after 'c'", "receive"),
    FallbackRule.of(r"\bseperate\b", "spelling", "Possible misspelling of 'separate'", "separate"),
    FallbackRule.of(r"\bdefinately\b", "spelling", "Possible misspelling of 'definitely'", "definitely"),
    FallbackRule.of(r"\boccured\b", "spelling", "Possible misspelling of 'occurred'", "occurred"),
    FallbackRule.of(r"\buntill\b", "spelling", "Possible misspelling of 'until'", "until"),
    FallbackRule.of(r"\bwich\b", "spelling", "Possible misspelling of 'which'", "which"),
    FallbackRule.of(r"\balot\b", "spelling", "'a lot' is two words", "a lot"),
    FallbackRule.of(
        r"\b(could|should|would|must) of\b", "grammar",
        "Use 'have' after a modal verb", r"\1 have",
        "'of' sounds like the contracted 've' but is not a verb.",
        flags=re.IGNORECASE,
    ),
    FallbackRule.of(
        r"\b(\w+)\s+\1\b", "grammar", "Repeated word", r"\1",
        flags=re.IGNORECASE,
    ),
    FallbackRule.of(r"(?<![\w.'])i(?=[\s,;:!?]|$)", "grammar", "Capitalize the pronoun 'I'", "I"),
    FallbackRule.of(r"\s+([,;:!?])", "punctuation", "Remove the space before punctuation", r"\1"),
    FallbackRule.of(r"([!?])\1+", "style", "Use a single exclamation or question mark", r"\1"),
    FallbackRule.of(r"(?<=\S)  +(?=\S)", "style", "Use a single space between words", " "),
)

DEFAULT_LOG_RULES: tuple[LogRule, ...] = (
    # JavaScript errors
    LogRule.of(r"TypeError.*null|cannot.*null", "error",
               "Null reference at {location}. Add null checks or optional chaining."),
    LogRule.of(r"TypeError.*undefined|cannot.*undefined", "error",
               "Undefined access at {location}. Check the variable or property exists first."),
    LogRule.of(r"ReferenceError|not defined", "error",
               "Missing reference at {location}. Check imports, typos, or load order."),
    LogRule.of(r"SyntaxError|Unexpected token", "error",
               "Syntax issue at {location}. Check brackets, quotes, or semicolons."),
    # network and API
    LogRule.of(r"NetworkError|fetch.*failed|ERR_NETWORK|ERR_INTERNET", "error",
               "Network failure at {location}. Check connectivity, URL, and CORS policy."),
    LogRule.of(r"\b404\b|Not Found", "warning",
               "Resource not found at {location}. Verify the URL path and server routes."),
    LogRule.of(r"\b40[13]\b|Unauthorized|Forbidden", "error",
               "Auth issue at {location}. Check credentials or permissions."),
    LogRule.of(r"\b50[023]\b|Internal Server", "error",
               "Server error at {location}. Check backend logs and service health."),
    LogRule.of(r"timeout|timed out", "warning",
               "Operation timeout at {location}. Consider retry logic or a longer timeout."),
    # async
    LogRule.of(r"Promise.*rejection|Unhandled.*rejection", "warning",
               "Unhandled async error at {location}. Add .catch() or try/catch around await."),
    LogRule.of(r"\basync\b|\bawait\b", "warning",
               "Async operation at {location}. Check promise handling and error boundaries."),
    # performance and memory
    LogRule.of(r"Maximum call stack|stack overflow", "error",
               "Stack overflow at {location}. Check for infinite recursion or loops."),
    LogRule.of(r"out of memory|memory leak", "error",
               "Memory issue at {location}. Check for retained references or large data."),
    LogRule.of(r"\bslow\b|performance|\blag\b", "warning",
               "Performance concern at {location}. Profile the hot path."),
    # DOM and UI
    LogRule.of(r"\bDOM\b|element|querySelector", "warning",
               "DOM manipulation at {location}. Ensure the element exists before access."),
    LogRule.of(r"addEventListener|\bevent\b", "warning",
               "Event handling at {location}. Check event binding and bubbling."),
    LogRule.of(r"render|component|React|Vue|Angular", "warning",
               "UI framework issue at {location}. Check component lifecycle and state."),
    # data and state
    LogRule.of(r"\bstate\b|setState|mutation", "warning",
               "State management at {location}. Check state updates and immutability."),
    LogRule.of(r"localStorage|sessionStorage|cookie", "warning",
               "Storage operation at {location}. Check browser support and quotas."),
    LogRule.of(r"JSON\.parse|parsing|invalid", "error",
               "Data parsing error at {location}. Validate the format before parsing."),
    # security and validation
    LogRule.of(r"security|XSS|injection", "error",
               "Security concern at {location}. Sanitize user input and validate data."),
    LogRule.of(r"validation|required", "warning",
               "Validation issue at {location}. Check input constraints and format."),
    # general
    LogRule.of(r"console\.log|\bdebug\b|\btrace\b", "info",
               "Debug output at {location}. Review logged values and execution flow."),
    LogRule.of(r"warning|deprecated", "warning",
               "Warning at {location}. Update deprecated code or address the concern."),
    LogRule.of(r"\binfo\b|notice", "info",
               "Info logged at {location}. Note for debugging context."),
)

_LEVEL_REMEDIATION: dict[str, tuple[str, str]] = {
    "error": ("error", "Error at {location}. Check the stack trace and surrounding code."),
    "warn": ("warning", "Warning at {location}. Review the potential issue before it escalates."),
    "info": ("info", "Info at {location}. Debugging checkpoint or status update."),
    "debug": ("info", "Debug at {location}. Detailed diagnostic information logged."),
    "log": ("info", "Log at {location}. General output for debugging purposes."),
}


def extract_error_type(message: str) -> str:
    match = _ERROR_TYPE.match(message)
    return match.group(1) if match else "Error"


class FallbackAnalyzer:
    """Ordered regex rules. Earlier rules win a span over later ones."""

    def __init__(
        self,
        rules: Sequence[FallbackRule] = DEFAULT_TEXT_RULES,
        log_rules: Sequence[LogRule] = DEFAULT_LOG_RULES,
    ) -> None:
        self.rules = tuple(rules)
        self.log_rules = tuple(log_rules)

    def analyze(self, text: str) -> AnalysisResult:
        claimed: list[tuple[int, int]] = []
        suggestions: list[Suggestion] = []

        for rule in self.rules:
            for match in rule.pattern.finditer(text):
                start, end = match.span()
                if end == start or any(start < c_end and c_start < end for c_start, c_end in claimed):
                    continue
                claimed.append((start, end))
                suggestions.append(build_suggestion(
                    text,
                    category=rule.category,
                    offset=start,
                    length=end - start,
                    original_text=match.group(0),
                    replacement_text=match.expand(rule.replacement) if rule.replacement is not None else "",
                    message=rule.message,
                    explanation=rule.explanation,
                ))

        suggestions.sort(key=lambda s: s.offset)
        return AnalysisResult(
            suggestions=suggestions,
            source_text_length=len(text),
            was_chunked=False,
            chunk_count=1,
            origin=Origin.FALLBACK,
        )

    def diagnose_log(self, entry: LogEntry) -> LogInsight:
        location = entry.location
        error_type = extract_error_type(entry.message)

        for rule in self.log_rules:
            if rule.pattern.search(entry.message):
                return LogInsight(
                    summary=rule.remediation.format(location=location),
                    severity=rule.severity,
                    location=location,
                    error_type=error_type,
                )

        severity, template = _LEVEL_REMEDIATION.get(
            entry.level, ("info", f"{error_type} at {{location}}. Review output and context."),
        )
        return LogInsight(
            summary=template.format(location=location),
            severity=severity,
            location=location,
            error_type=error_type,
        )
