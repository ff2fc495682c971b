"""TextChunker: splits text around token limits on semantic boundaries.

Token counts are estimated, not measured: one token is taken to be
``chars_per_token`` characters. Chunks after the first carry a little of the
previous chunk's tail as leading context; ``Chunk.core_start`` marks where a
chunk's own span begins, so the core spans laid end to end rebuild the text.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Iterable, Optional

from inkwell.models.analysis import Chunk, ChunkStats, Suggestion

logger = logging.getLogger(__name__)

_SENTENCE_END = re.compile(r"[.!?]\s")


class TextChunker:
    """Token-bounded, boundary-aligned splitting and merging."""

    def __init__(
        self,
        max_tokens: int = 900,
        overlap_tokens: int = 50,
        chars_per_token: int = 4,
        boundary_window: int = 100,
    ) -> None:
        if max_tokens < 1 or chars_per_token < 1:
            raise ValueError("max_tokens and chars_per_token must be positive")
        self.max_tokens = max_tokens
        self.overlap_tokens = overlap_tokens
        self.chars_per_token = chars_per_token
        self.boundary_window = boundary_window

    def estimate_tokens(self, text: str | int) -> int:
        length = text if isinstance(text, int) else len(text)
        return math.ceil(length / self.chars_per_token)

    def needs_chunking(self, text: str, limit: Optional[int] = None) -> bool:
        return self.estimate_tokens(text) > (limit or self.max_tokens)

    def chunk(
        self, text: str, limit: Optional[int] = None, overlap: Optional[int] = None
    ) -> list[Chunk]:
        max_chars = (limit or self.max_tokens) * self.chars_per_token
        overlap_tokens = self.overlap_tokens if overlap is None else overlap
        overlap_chars = max(0, overlap_tokens * self.chars_per_token)

        if len(text) <= max_chars:
            return [Chunk(text=text, index=0, start_offset=0, end_offset=len(text))]

        chunks: list[Chunk] = []
        position = 0
        while position < len(text):
            ideal_end = min(position + max_chars, len(text))
            end = ideal_end
            if ideal_end < len(text):
                end = self._find_boundary(text, position, ideal_end)

            start = max(0, position - overlap_chars) if position > 0 else 0
            chunks.append(Chunk(
                text=text[start:end],
                index=len(chunks),
                start_offset=start,
                end_offset=end,
                is_first=not chunks,
                is_last=end >= len(text),
                overlap_chars=position - start,
            ))
            position = end

        logger.debug("Split %d chars into %d chunks", len(text), len(chunks))
        return chunks

    def _find_boundary(self, text: str, start: int, ideal_end: int) -> int:
        """Best split point in (start, ideal_end]: paragraph > sentence > clause > word."""
        window_start = max(start, ideal_end - self.boundary_window)
        window = text[window_start:ideal_end]

        idx = window.rfind("\n\n")
        if idx != -1:
            return window_start + idx + 2

        last_sentence = None
        for last_sentence in _SENTENCE_END.finditer(window):
            pass
        if last_sentence is not None:
            return window_start + last_sentence.end()

        idx = window.rfind(",")
        if idx != -1:
            return window_start + idx + 1

        idx = window.rfind(" ")
        if idx != -1:
            return window_start + idx + 1

        return ideal_end

    def merge_chunk_results(self, results: Iterable[Iterable[Suggestion]]) -> list[Suggestion]:
        """Flatten per-chunk suggestions (absolute offsets), dedupe, sort by offset."""
        merged: list[Suggestion] = []
        seen: set[tuple[int, int, str]] = set()
        chunk_count = 0
        for chunk_result in results:
            chunk_count += 1
            for suggestion in chunk_result:
                if suggestion.dedup_key in seen:
                    continue
                seen.add(suggestion.dedup_key)
                merged.append(suggestion)

        merged.sort(key=lambda s: s.offset)
        if chunk_count > 1:
            logger.debug("Merged %d chunk results into %d suggestions", chunk_count, len(merged))
        return merged

    def get_chunk_stats(self, chunks: list[Chunk]) -> ChunkStats:
        if not chunks:
            return ChunkStats()
        total_chars = chunks[-1].end_offset
        return ChunkStats(
            total_chunks=len(chunks),
            average_chunk_size=round(sum(len(c.text) for c in chunks) / len(chunks)),
            total_chars=total_chars,
            estimated_tokens=self.estimate_tokens(total_chars),
        )
