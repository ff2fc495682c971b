"""Captured log lines and their diagnoses."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel

from inkwell.models.capability import Origin

LogLevel = Literal["log", "error", "warn", "info", "debug"]


class LogEntry(BaseModel):
    """A single console/log line captured by a host."""

    message: str
    level: LogLevel = "log"
    file: Optional[str] = None
    line: Optional[int] = None
    stack: str = ""

    @property
    def location(self) -> str:
        if not self.file:
            return "unknown"
        return f"{self.file}:{self.line if self.line is not None else '?'}"


class LogInsight(BaseModel):
    """Debugging insight for one log entry."""

    summary: str
    severity: str = "info"  # error, warning, info
    origin: Origin = Origin.FALLBACK
    location: str = "unknown"
    error_type: str = "Error"
    occurrences: int = 1
    recurring: bool = False
