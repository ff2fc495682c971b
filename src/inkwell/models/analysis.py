"""Chunk, suggestion, and analysis result models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from inkwell.models.capability import Origin


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Chunk(BaseModel):
    """A contiguous slice of source text sized to fit a token budget."""

    text: str
    index: int
    start_offset: int
    end_offset: int
    is_first: bool = True
    is_last: bool = True
    overlap_chars: int = 0  # leading chars repeated from the previous chunk

    @property
    def core_start(self) -> int:
        """Absolute offset where this chunk's own (non-overlap) span begins."""
        return self.start_offset + self.overlap_chars


class ChunkStats(BaseModel):
    total_chunks: int = 0
    average_chunk_size: int = 0
    total_chars: int = 0
    estimated_tokens: int = 0


class Suggestion(BaseModel):
    """One normalized issue, with an optional replacement."""

    category: str = "grammar"
    severity: str = "info"  # error, warning, info
    offset: int = 0
    length: int = 0
    original_text: str = ""
    replacement_text: str = ""
    message: str = ""
    explanation: str = ""
    context_before: str = ""
    context_after: str = ""
    created_at: datetime = Field(default_factory=_utcnow)

    @property
    def dedup_key(self) -> tuple[int, int, str]:
        return (self.offset, self.length, self.category)


class AnalysisResult(BaseModel):
    """Final output of one analyze() call, model- or fallback-derived."""

    suggestions: list[Suggestion] = Field(default_factory=list)
    source_text_length: int = 0
    was_chunked: bool = False
    chunk_count: int = 1
    failed_chunks: int = 0
    origin: Origin = Origin.MODEL
    cached: bool = False
    cached_at: Optional[datetime] = None


class Stats(BaseModel):
    """Engine counters. Best-effort; never authoritative."""

    checks_performed: int = 0
    issues_found: int = 0
    cache_hits: int = 0
    average_latency_ms: float = 0.0
    cache_size: int = 0
    cache_hit_rate: float = 0.0  # percent of checks served from cache


class ToneAnalysis(BaseModel):
    """Single-shot tone/empathy reading of a piece of text."""

    score: int = Field(default=50, ge=0, le=100)  # 0 harsh, 100 warm
    tone: str = "neutral"
    issues: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    origin: Origin = Origin.MODEL
    error: str = ""
