"""Type aliases used across Inkwell."""

from __future__ import annotations

from typing import Any

JsonDict = dict[str, Any]
SessionOptions = dict[str, Any]
CacheKey = str
AnalysisContext = dict[str, Any]
