"""Tests for TextChunker splitting, boundary choice, and merging."""

from __future__ import annotations

import pytest

from inkwell.chunking.text_chunker import TextChunker
from inkwell.models.analysis import Suggestion

SENTENCE = "The quick brown fox jumps over the lazy dog, then naps. "


def _core(text: str, chunks) -> str:
    return "".join(text[c.core_start:c.end_offset] for c in chunks)


@pytest.fixture
def chunker():
    return TextChunker(max_tokens=50, overlap_tokens=5)  # 200-char chunks, 20-char overlap


class TestSingleChunk:
    def test_short_text_is_one_full_span_chunk(self):
        text = "x" * 50
        chunks = TextChunker(max_tokens=900).chunk(text)

        assert len(chunks) == 1
        only = chunks[0]
        assert (only.start_offset, only.end_offset) == (0, 50)
        assert only.text == text
        assert only.is_first and only.is_last
        assert only.overlap_chars == 0

    def test_text_exactly_at_limit_is_not_split(self, chunker):
        assert len(chunker.chunk("a" * 200)) == 1

    def test_empty_text(self, chunker):
        chunks = chunker.chunk("")
        assert len(chunks) == 1
        assert chunks[0].end_offset == 0


class TestSplitting:
    @pytest.mark.parametrize("text", [
        SENTENCE * 20,
        ("Paragraph one goes here.\n\n" + "word " * 60) * 4,
        "a" * 777,
        "alpha,beta," * 90,
    ])
    def test_core_spans_rebuild_text(self, chunker, text):
        chunks = chunker.chunk(text)

        assert len(chunks) > 1
        assert _core(text, chunks) == text
        ends = [c.end_offset for c in chunks]
        assert ends == sorted(set(ends))
        assert ends[-1] == len(text)
        assert all(c.text == text[c.start_offset:c.end_offset] for c in chunks)
        assert all(c.end_offset - c.core_start <= 200 for c in chunks)
        assert chunks[0].is_first and chunks[-1].is_last
        assert [c.index for c in chunks] == list(range(len(chunks)))

    def test_is_deterministic(self, chunker):
        text = SENTENCE * 15
        assert chunker.chunk(text) == chunker.chunk(text)

    def test_later_chunks_carry_leading_overlap(self, chunker):
        chunks = chunker.chunk("a" * 500)

        assert [c.end_offset for c in chunks] == [200, 400, 500]
        assert chunks[1].start_offset == 180
        assert chunks[1].overlap_chars == 20
        assert chunks[0].overlap_chars == 0

    def test_overlap_clamped_at_text_start(self):
        chunker = TextChunker(max_tokens=1, overlap_tokens=50)
        chunks = chunker.chunk("abcdefghij")

        assert chunks[1].start_offset == 0
        assert _core("abcdefghij", chunks) == "abcdefghij"


class TestBoundaries:
    def test_prefers_paragraph_break(self, chunker):
        text = "a" * 150 + "\n\n" + "b. c," * 10 + "d" * 200
        assert chunker.chunk(text)[0].end_offset == 152

    def test_sentence_end_beats_comma(self, chunker):
        text = "a" * 150 + ". " + "b" * 20 + "," + "c" * 200
        assert chunker.chunk(text)[0].end_offset == 152

    def test_comma_beats_space(self, chunker):
        text = "a" * 150 + "," + "b" * 20 + " " + "c" * 200
        assert chunker.chunk(text)[0].end_offset == 151

    def test_falls_back_to_space(self, chunker):
        text = "a" * 150 + " " + "b" * 200
        assert chunker.chunk(text)[0].end_offset == 151

    def test_boundary_search_stays_inside_window(self, chunker):
        text = "a" * 50 + " " + "b" * 300
        assert chunker.chunk(text)[0].end_offset == 200


class TestEstimates:
    def test_estimate_tokens_rounds_up(self, chunker):
        assert chunker.estimate_tokens("abcde") == 2
        assert chunker.estimate_tokens("") == 0

    def test_needs_chunking(self):
        chunker = TextChunker()
        assert not chunker.needs_chunking("a" * 3600, 900)
        assert chunker.needs_chunking("a" * 3601, 900)
        assert chunker.needs_chunking("a" * 41, 10)

    def test_chunk_stats(self, chunker):
        chunks = chunker.chunk("a" * 500)
        stats = chunker.get_chunk_stats(chunks)

        assert stats.total_chunks == 3
        assert stats.total_chars == 500
        assert stats.estimated_tokens == 125
        assert stats.average_chunk_size == round((200 + 220 + 120) / 3)

    def test_chunk_stats_empty(self, chunker):
        assert chunker.get_chunk_stats([]).total_chunks == 0


class TestMerge:
    def _s(self, offset: int, length: int = 3, category: str = "spelling") -> Suggestion:
        return Suggestion(offset=offset, length=length, category=category)

    def test_sorts_by_offset(self, chunker):
        merged = chunker.merge_chunk_results([[self._s(30), self._s(5)], [self._s(12)]])
        assert [s.offset for s in merged] == [5, 12, 30]

    def test_duplicates_from_overlap_collapse(self, chunker):
        merged = chunker.merge_chunk_results([
            [self._s(10), self._s(190)],
            [self._s(190), self._s(250)],
        ])
        assert [s.offset for s in merged] == [10, 190, 250]

    def test_same_offset_different_category_kept(self, chunker):
        merged = chunker.merge_chunk_results([[self._s(10)], [self._s(10, category="grammar")]])
        assert len(merged) == 2

    def test_is_idempotent(self, chunker):
        once = chunker.merge_chunk_results([[self._s(9), self._s(1)], [self._s(1), self._s(4, 2)]])
        twice = chunker.merge_chunk_results([once])
        assert twice == once

    def test_empty(self, chunker):
        assert chunker.merge_chunk_results([]) == []
