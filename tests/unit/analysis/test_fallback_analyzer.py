"""Tests for the deterministic rule-based FallbackAnalyzer."""

from __future__ import annotations

from inkwell.analysis.fallback import FallbackAnalyzer, FallbackRule, LogRule, extract_error_type
from inkwell.models.capability import Origin
from inkwell.models.logs import LogEntry


def _dump(result) -> list[dict]:
    return [s.model_dump(exclude={"created_at"}) for s in result.suggestions]


class TestTextRules:
    def test_single_rule_reports_one_suggestion(self):
        analyzer = FallbackAnalyzer(rules=[FallbackRule.of(r"\bTeh\b", "spelling", "Misspelling", "The")])

        result = analyzer.analyze("Teh quick brown fox")

        assert len(result.suggestions) == 1
        s = result.suggestions[0]
        assert (s.offset, s.length, s.category) == (0, 3, "spelling")
        assert s.severity == "error"
        assert s.replacement_text == "The"
        assert s.context_after == " quick brown fox"

    def test_default_rules_agree_on_example(self):
        result = FallbackAnalyzer().analyze("Teh quick brown fox")
        assert [(s.offset, s.length, s.category) for s in result.suggestions] == [(0, 3, "spelling")]

    def test_result_shape_matches_model_results(self):
        result = FallbackAnalyzer().analyze("Teh quick brown fox")
        assert result.origin is Origin.FALLBACK
        assert result.source_text_length == 19
        assert result.chunk_count == 1
        assert not result.was_chunked
        assert not result.cached

    def test_earlier_rule_wins_overlapping_span(self):
        analyzer = FallbackAnalyzer(rules=[
            FallbackRule.of(r"quick brown", "style", "Cliche"),
            FallbackRule.of(r"brown", "spelling", "Colour"),
        ])
        result = analyzer.analyze("Teh quick brown fox")
        assert [s.category for s in result.suggestions] == ["style"]

    def test_replacement_templates_expand(self):
        result = FallbackAnalyzer().analyze("We should of left the the party.")

        by_category = {s.original_text: s.replacement_text for s in result.suggestions}
        assert by_category["should of"] == "should have"
        assert by_category["the the"] == "the"

    def test_suggestions_sorted_by_offset(self):
        result = FallbackAnalyzer().analyze("i think we could of gone , Teh end")
        offsets = [s.offset for s in result.suggestions]
        assert offsets == sorted(offsets)
        assert len(offsets) == 4

    def test_clean_text_has_no_suggestions(self):
        assert FallbackAnalyzer().analyze("The quick brown fox jumps over the lazy dog.").suggestions == []

    def test_is_deterministic(self):
        text = "Teh  results occured untill now!!"
        assert _dump(FallbackAnalyzer().analyze(text)) == _dump(FallbackAnalyzer().analyze(text))


class TestLogRules:
    def test_first_matching_rule_wins(self):
        entry = LogEntry(
            message="TypeError: Cannot read properties of null (reading 'id')",
            level="error", file="src/app.js", line=10,
        )
        insight = FallbackAnalyzer().diagnose_log(entry)

        assert insight.summary.startswith("Null reference at src/app.js:10")
        assert insight.severity == "error"
        assert insight.error_type == "TypeError"
        assert insight.origin is Origin.FALLBACK

    def test_custom_rules(self):
        analyzer = FallbackAnalyzer(log_rules=[LogRule.of(r"quota", "warning", "Quota hit at {location}.")])
        insight = analyzer.diagnose_log(LogEntry(message="Storage QUOTA exceeded", level="warn"))
        assert insight.summary == "Quota hit at unknown."

    def test_level_fallback_when_nothing_matches(self):
        insight = FallbackAnalyzer().diagnose_log(LogEntry(message="hello world", level="warn", file="a.js"))
        assert insight.summary == "Warning at a.js:?. Review the potential issue before it escalates."
        assert insight.severity == "warning"

    def test_extract_error_type(self):
        assert extract_error_type("RangeError: bad length") == "RangeError"
        assert extract_error_type("something broke") == "Error"
