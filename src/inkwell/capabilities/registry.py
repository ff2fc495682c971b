"""CapabilityRegistry: probes and memoizes which capability kinds a backend offers."""

from __future__ import annotations

import asyncio
import logging

from inkwell.core.protocols import ICapabilityBackend
from inkwell.models.capability import Availability, CapabilityKind

logger = logging.getLogger(__name__)


class CapabilityRegistry:
    """Availability state per capability kind, probed once per registry lifetime."""

    def __init__(self, backend: ICapabilityBackend) -> None:
        self._backend = backend
        self._states: dict[CapabilityKind, Availability] = {}
        self._probe_lock = asyncio.Lock()
        self._probed = False

    @property
    def probed(self) -> bool:
        return self._probed

    async def probe(self) -> dict[CapabilityKind, Availability]:
        """Probe every kind exactly once. Concurrent callers share the first probe."""
        if self._probed:
            return dict(self._states)

        async with self._probe_lock:
            if self._probed:
                return dict(self._states)

            for kind in CapabilityKind:
                self._states[kind] = await self._probe_one(kind)

            self._probed = True
            ready = [k.value for k, s in self._states.items() if s is Availability.AVAILABLE]
            logger.info("Capability probe complete, ready: %s", ready or "none")
            return dict(self._states)

    async def _probe_one(self, kind: CapabilityKind) -> Availability:
        try:
            state = Availability(await self._backend.availability(kind))
        except Exception as exc:
            logger.warning("Probe for %s failed, marking unavailable: %s", kind, exc)
            return Availability.UNAVAILABLE
        logger.debug("%s availability: %s", kind, state)
        return state

    def state(self, kind: CapabilityKind) -> Availability:
        return self._states.get(kind, Availability.UNAVAILABLE)

    def states(self) -> dict[CapabilityKind, Availability]:
        return {kind: self.state(kind) for kind in CapabilityKind}

    def is_available(self, kind: CapabilityKind) -> bool:
        """True when the kind exists at all, even if it still needs a download."""
        return self.state(kind) is not Availability.UNAVAILABLE

    def is_ready(self, kind: CapabilityKind) -> bool:
        """True only when sessions can be created right now."""
        return self.state(kind) is Availability.AVAILABLE
