"""Parse-and-normalize boundary between raw capability output and Suggestion.

Backends answer in loosely shaped payloads: a JSON string, a bare list, or an
object with a ``suggestions`` field. Everything is mapped onto the fixed
Suggestion schema here, the same way for single- and multi-chunk analysis.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from inkwell.models.analysis import Chunk, Suggestion

CONTEXT_WINDOW = 20

SEVERITY_BY_CATEGORY: dict[str, str] = {
    "spelling": "error",
    "grammar": "error",
    "punctuation": "warning",
    "style": "info",
    "clarity": "info",
}


def severity_for(category: str) -> str:
    return SEVERITY_BY_CATEGORY.get(category, "info")


class RawSuggestion(BaseModel):
    """Lenient view of one backend suggestion item."""

    model_config = ConfigDict(extra="ignore")

    category: str = Field(default="grammar", validation_alias=AliasChoices("type", "category"))
    offset: int = Field(default=0, ge=0)
    length: int = Field(default=0, ge=0)
    original: str = Field(default="", validation_alias=AliasChoices("original", "original_text"))
    suggestion: str = Field(default="", validation_alias=AliasChoices("suggestion", "replacement"))
    message: str = ""
    explanation: str = ""

    @field_validator("category", mode="before")
    @classmethod
    def _category_default(cls, v: Any) -> Any:
        return v or "grammar"

    @field_validator("offset", "length", mode="before")
    @classmethod
    def _none_is_zero(cls, v: Any) -> Any:
        return 0 if v is None else v

    @field_validator("original", "suggestion", "message", "explanation", mode="before")
    @classmethod
    def _none_is_empty(cls, v: Any) -> Any:
        return "" if v is None else v


@dataclass(frozen=True)
class ParseOk:
    suggestions: list[Suggestion] = field(default_factory=list)


@dataclass(frozen=True)
class ParseFailed:
    reason: str


ParseOutcome = ParseOk | ParseFailed


def build_suggestion(
    source: str,
    *,
    category: str,
    offset: int,
    length: int,
    original_text: str = "",
    replacement_text: str = "",
    message: str = "",
    explanation: str = "",
    base_offset: int = 0,
) -> Suggestion:
    """Suggestion for ``source[offset:offset+length]``, reported at ``base_offset + offset``."""
    end = offset + length
    return Suggestion(
        category=category,
        severity=severity_for(category),
        offset=base_offset + offset,
        length=length,
        original_text=original_text,
        replacement_text=replacement_text,
        message=message,
        explanation=explanation,
        context_before=source[max(0, offset - CONTEXT_WINDOW):offset],
        context_after=source[end:end + CONTEXT_WINDOW],
    )


def _items(raw: Any) -> Optional[list[Any]]:
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError:
            return None
    if isinstance(raw, list):
        return raw
    if isinstance(raw, dict):
        items = raw.get("suggestions", [])
        return items if isinstance(items, list) else None
    return None


def normalize_response(raw: Any, chunk: Chunk) -> ParseOutcome:
    """Map a raw per-chunk response onto Suggestions with absolute offsets."""
    items = _items(raw)
    if items is None:
        return ParseFailed(f"unsupported response shape: {type(raw).__name__}")

    suggestions: list[Suggestion] = []
    for item in items:
        try:
            parsed = RawSuggestion.model_validate(item)
        except ValidationError as exc:
            return ParseFailed(f"invalid suggestion item: {exc.error_count()} error(s)")
        suggestions.append(build_suggestion(
            chunk.text,
            category=parsed.category,
            offset=parsed.offset,
            length=parsed.length,
            original_text=parsed.original,
            replacement_text=parsed.suggestion,
            message=parsed.message,
            explanation=parsed.explanation,
            base_offset=chunk.start_offset,
        ))
    return ParseOk(suggestions)
