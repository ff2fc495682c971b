"""Protocol interfaces for all Inkwell abstractions.

All inter-layer communication uses these Protocols: structural typing,
no inheritance required, easy to test with isinstance().
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from inkwell.core.types import CacheKey, SessionOptions

if TYPE_CHECKING:
    from inkwell.models.analysis import AnalysisResult
    from inkwell.models.capability import Availability, CapabilityKind


# ---------------------------------------------------------------------------
# Capability backend
# ---------------------------------------------------------------------------

@runtime_checkable
class ICapabilitySession(Protocol):
    """One live, initialized model instance serving a single capability kind."""

    async def invoke(self, text: str, context: str = "") -> Any: ...

    def destroy(self) -> None: ...


@runtime_checkable
class ICapabilityBackend(Protocol):
    """Probe and session factory for on-device model capabilities."""

    async def availability(self, kind: CapabilityKind) -> Availability: ...

    async def create_session(
        self, kind: CapabilityKind, options: SessionOptions
    ) -> ICapabilitySession: ...


# ---------------------------------------------------------------------------
# Result cache
# ---------------------------------------------------------------------------

@runtime_checkable
class IResultCache(Protocol):
    """Bounded cache of final analysis results keyed by content hash."""

    def key_for(self, text: str) -> CacheKey: ...

    def get(self, key: CacheKey) -> AnalysisResult | None: ...

    def put(self, key: CacheKey, result: AnalysisResult) -> AnalysisResult: ...

    def clear(self) -> None: ...

    def __len__(self) -> int: ...
