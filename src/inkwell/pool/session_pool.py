"""SessionPool: bounded per-kind pool of live capability sessions.

Sessions are expensive to create and hold device memory, so the pool caps
how many exist per capability kind, hands idle ones back out to callers with
matching options, and destroys ones that stay idle past the timeout.

A handle is always exactly one of available, in use, or destroyed. Destroyed
handles are dropped from the pool and never handed out again.
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import StrEnum
from typing import AsyncIterator, Callable, Optional

from inkwell.core.exceptions import SessionCreationError
from inkwell.core.protocols import ICapabilityBackend, ICapabilitySession
from inkwell.core.types import SessionOptions
from inkwell.models.capability import CapabilityKind

logger = logging.getLogger(__name__)

# Deferred sweeps fire slightly after the idle timeout so the handle is
# guaranteed to be past it by the time the check runs.
_SWEEP_SLACK_S = 0.05


class HandleState(StrEnum):
    AVAILABLE = "available"
    IN_USE = "in_use"
    DESTROYED = "destroyed"


@dataclass(eq=False)
class SessionHandle:
    """Wraps one live session together with its pool bookkeeping."""

    kind: CapabilityKind
    session: ICapabilitySession
    options: SessionOptions = field(default_factory=dict)
    created_at: float = 0.0
    last_used: float = 0.0
    in_use: bool = False
    destroyed: bool = False

    @property
    def state(self) -> HandleState:
        if self.destroyed:
            return HandleState.DESTROYED
        if self.in_use:
            return HandleState.IN_USE
        return HandleState.AVAILABLE

    def matches(self, options: SessionOptions) -> bool:
        return self.options == options


class SessionPool:
    """At most ``max_per_kind`` live sessions per capability kind."""

    def __init__(
        self,
        backend: ICapabilityBackend,
        *,
        max_per_kind: int = 3,
        acquire_timeout_ms: int = 5000,
        idle_timeout_s: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_per_kind < 1:
            raise ValueError("max_per_kind must be at least 1")
        self._backend = backend
        self._max_per_kind = max_per_kind
        self._acquire_timeout_ms = acquire_timeout_ms
        self._idle_timeout_s = idle_timeout_s
        self._clock = clock
        self._handles: dict[CapabilityKind, list[SessionHandle]] = {k: [] for k in CapabilityKind}
        self._pending: dict[CapabilityKind, int] = {k: 0 for k in CapabilityKind}
        self._freed: dict[CapabilityKind, asyncio.Event] = {}
        self._sweeps: set[asyncio.TimerHandle] = set()
        self._generation = 0  # bumped by destroy_all()

    @property
    def max_per_kind(self) -> int:
        return self._max_per_kind

    @property
    def acquire_timeout_ms(self) -> int:
        return self._acquire_timeout_ms

    def handles(self, kind: CapabilityKind) -> list[SessionHandle]:
        return list(self._handles[kind])

    def live_count(self, kind: CapabilityKind) -> int:
        """Non-destroyed handles plus sessions still being constructed."""
        live = sum(1 for h in self._handles[kind] if not h.destroyed)
        return live + self._pending[kind]

    # ------------------------------------------------------------------
    # acquire / release
    # ------------------------------------------------------------------

    async def acquire(
        self,
        kind: CapabilityKind,
        options: Optional[SessionOptions] = None,
        *,
        timeout_ms: Optional[int] = None,
    ) -> SessionHandle | None:
        """Return an in-use handle for ``kind``, or None if none freed up in time
        or the pool was torn down while the session was being created.

        Raises:
            SessionCreationError: the backend failed to construct a session.
        """
        wanted = dict(options or {})
        wait_ms = self._acquire_timeout_ms if timeout_ms is None else timeout_ms
        loop = asyncio.get_running_loop()
        deadline = loop.time() + wait_ms / 1000
        self.idle_sweep(kind)

        while True:
            handle = self._claim(kind, wanted)
            if handle is not None:
                logger.debug("Reusing %s session", kind)
                return handle

            if self.live_count(kind) >= self._max_per_kind:
                self._evict_mismatched(kind, wanted)
            if self.live_count(kind) < self._max_per_kind:
                return await self._create(kind, wanted)

            remaining = deadline - loop.time()
            if remaining <= 0:
                logger.warning("No %s session freed within %dms", kind, wait_ms)
                return None

            logger.debug("%s pool full, waiting up to %.0fms", kind, remaining * 1000)
            freed = self._freed_event(kind)
            freed.clear()
            try:
                await asyncio.wait_for(freed.wait(), remaining)
            except TimeoutError:
                continue

    def release(self, handle: SessionHandle | None) -> None:
        """Hand a session back to the pool and schedule its idle check."""
        if handle is None or handle.destroyed or not handle.in_use:
            return
        handle.in_use = False
        handle.last_used = self._clock()
        self._freed_event(handle.kind).set()
        self._schedule_sweep(handle.kind)

    @asynccontextmanager
    async def session(
        self, kind: CapabilityKind, options: Optional[SessionOptions] = None
    ) -> AsyncIterator[SessionHandle | None]:
        """Acquire for the duration of a block; always released on exit."""
        handle = await self.acquire(kind, options)
        try:
            yield handle
        finally:
            self.release(handle)

    def _claim(self, kind: CapabilityKind, options: SessionOptions) -> SessionHandle | None:
        for handle in self._handles[kind]:
            if handle.state is HandleState.AVAILABLE and handle.matches(options):
                handle.in_use = True
                handle.last_used = self._clock()
                return handle
        return None

    async def _create(self, kind: CapabilityKind, options: SessionOptions) -> SessionHandle | None:
        generation = self._generation
        self._pending[kind] += 1
        try:
            session = await self._backend.create_session(kind, dict(options))
        except Exception as exc:
            logger.error("Failed to create %s session: %s", kind, exc)
            self._freed_event(kind).set()
            raise SessionCreationError(kind, str(exc)) from exc
        finally:
            self._pending[kind] -= 1

        now = self._clock()
        handle = SessionHandle(
            kind=kind, session=session, options=options,
            created_at=now, last_used=now, in_use=True,
        )
        if generation != self._generation:
            logger.info("Pool torn down while creating %s session, destroying it", kind)
            self._destroy(handle)
            return None
        self._handles[kind].append(handle)
        logger.info("Created new %s session (%d live)", kind, self.live_count(kind))
        return handle

    def _evict_mismatched(self, kind: CapabilityKind, options: SessionOptions) -> None:
        """Free a slot held by an idle session created with different options."""
        for handle in self._handles[kind]:
            if handle.state is HandleState.AVAILABLE and not handle.matches(options):
                logger.debug("Evicting idle %s session with stale options", kind)
                self._destroy(handle)
                self._compact(kind)
                return

    # ------------------------------------------------------------------
    # idle reaping / teardown
    # ------------------------------------------------------------------

    def idle_sweep(self, kind: CapabilityKind) -> int:
        """Destroy idle sessions past the timeout. Returns how many were destroyed."""
        now = self._clock()
        destroyed = 0
        for handle in self._handles[kind]:
            if handle.state is HandleState.AVAILABLE and now - handle.last_used >= self._idle_timeout_s:
                self._destroy(handle)
                destroyed += 1
        if destroyed:
            self._compact(kind)
            self._freed_event(kind).set()
            logger.info("Destroyed %d idle %s session(s)", destroyed, kind)
        return destroyed

    def destroy_all(self) -> None:
        """Force-destroy every session of every kind, including ones still being created."""
        self._generation += 1
        for timer in self._sweeps:
            timer.cancel()
        self._sweeps.clear()

        for kind in CapabilityKind:
            for handle in self._handles[kind]:
                self._destroy(handle)
            self._handles[kind] = []
        logger.info("All sessions destroyed")

    def _destroy(self, handle: SessionHandle) -> None:
        if handle.destroyed:
            return
        handle.destroyed = True
        handle.in_use = False
        try:
            handle.session.destroy()
        except Exception as exc:
            logger.error("Error destroying %s session: %s", handle.kind, exc)

    def _compact(self, kind: CapabilityKind) -> None:
        self._handles[kind] = [h for h in self._handles[kind] if not h.destroyed]

    def _schedule_sweep(self, kind: CapabilityKind) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return  # no loop; the next acquire() sweeps instead
        timer = loop.call_later(self._idle_timeout_s + _SWEEP_SLACK_S, self._deferred_sweep, kind)
        self._sweeps.add(timer)

    def _deferred_sweep(self, kind: CapabilityKind) -> None:
        now = asyncio.get_running_loop().time()
        self._sweeps = {t for t in self._sweeps if t.when() > now}
        self.idle_sweep(kind)

    def _freed_event(self, kind: CapabilityKind) -> asyncio.Event:
        event = self._freed.get(kind)
        if event is None:
            event = self._freed[kind] = asyncio.Event()
        return event

    def stats(self) -> dict[str, dict[str, int]]:
        out: dict[str, dict[str, int]] = {}
        for kind, handles in self._handles.items():
            out[kind.value] = {
                "total": len(handles),
                "in_use": sum(1 for h in handles if h.state is HandleState.IN_USE),
                "available": sum(1 for h in handles if h.state is HandleState.AVAILABLE),
                "pending": self._pending[kind],
            }
        return out
