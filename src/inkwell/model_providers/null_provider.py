"""Backend with no capabilities at all. Every analysis runs on the fallback path."""

from __future__ import annotations

from typing import Any

from inkwell.core.exceptions import CapabilityUnavailableError
from inkwell.core.protocols import ICapabilitySession
from inkwell.models.capability import Availability, CapabilityKind


class UnavailableBackend:
    """ICapabilityBackend for hosts without on-device models."""

    async def availability(self, kind: CapabilityKind) -> Availability:
        return Availability.UNAVAILABLE

    async def create_session(self, kind: CapabilityKind, options: dict[str, Any]) -> ICapabilitySession:
        raise CapabilityUnavailableError(kind)
