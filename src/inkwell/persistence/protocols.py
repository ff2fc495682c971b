"""Re-export persistence protocols from core for convenience."""

from __future__ import annotations

from inkwell.core.protocols import IResultCache

__all__ = ["IResultCache"]
