"""Capability kinds and their availability states."""

from __future__ import annotations

from enum import StrEnum


class CapabilityKind(StrEnum):
    PROOFREADER = "proofreader"
    WRITER = "writer"
    REWRITER = "rewriter"
    SUMMARIZER = "summarizer"
    LANGUAGE_MODEL = "language_model"


class Availability(StrEnum):
    UNAVAILABLE = "unavailable"
    DOWNLOADABLE = "downloadable"
    DOWNLOADING = "downloading"
    AVAILABLE = "available"


class Origin(StrEnum):
    """Where an analysis result came from."""

    MODEL = "model"
    FALLBACK = "fallback"


class Priority(StrEnum):
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Lower rank drains first."""
        return {"high": 0, "normal": 1, "low": 2}[self.value]
