"""Mock capability backend for local development and testing.

Returns canned responses. No real model calls.
"""

from __future__ import annotations

import asyncio
import json
from collections import Counter
from typing import Any, Callable, Union

from inkwell.models.capability import Availability, CapabilityKind

Responder = Union[Callable[[str, str], Any], Any]

DEFAULT_RESPONSES: dict[CapabilityKind, Any] = {
    CapabilityKind.PROOFREADER: [],
    CapabilityKind.WRITER: "Mock analysis: review the logged value and the code path that produced it.",
    CapabilityKind.REWRITER: lambda text, context: text,
    CapabilityKind.SUMMARIZER: lambda text, context: text[:200],
    CapabilityKind.LANGUAGE_MODEL: json.dumps(
        {"score": 70, "tone": "professional", "issues": [], "suggestions": []}
    ),
}


class MockSession:
    """ICapabilitySession that answers from a responder and records calls."""

    def __init__(
        self,
        kind: CapabilityKind,
        options: dict[str, Any],
        responder: Responder,
        *,
        fail_calls: bool = False,
        delay_s: float = 0.0,
    ) -> None:
        self.kind = kind
        self.options = options
        self.calls: list[tuple[str, str]] = []
        self.destroy_count = 0
        self._responder = responder
        self._fail_calls = fail_calls
        self._delay_s = delay_s

    async def invoke(self, text: str, context: str = "") -> Any:
        self.calls.append((text, context))
        if self._delay_s:
            await asyncio.sleep(self._delay_s)
        if self._fail_calls:
            raise RuntimeError(f"mock {self.kind} call failed")
        if callable(self._responder):
            return self._responder(text, context)
        return self._responder

    def destroy(self) -> None:
        self.destroy_count += 1


class MockCapabilityBackend:
    """ICapabilityBackend with per-kind availability, responses, and failure switches."""

    def __init__(self, default_availability: Availability = Availability.AVAILABLE) -> None:
        self._availability: dict[CapabilityKind, Availability | Exception] = {
            kind: default_availability for kind in CapabilityKind
        }
        self._responses: dict[CapabilityKind, Responder] = dict(DEFAULT_RESPONSES)
        self.fail_create = False
        self.fail_calls = False
        self.call_delay_s = 0.0
        self.create_delay_s = 0.0
        self.sessions: list[MockSession] = []
        self.probe_counts: Counter[CapabilityKind] = Counter()

    def set_availability(self, kind: CapabilityKind, state: Availability | Exception) -> None:
        """Set a kind's probe result; an exception instance makes the probe raise it."""
        self._availability[kind] = state

    def set_response(self, kind: CapabilityKind, response: Responder) -> None:
        """Register a canned response, or a ``(text, context) -> Any`` callable."""
        self._responses[kind] = response

    async def availability(self, kind: CapabilityKind) -> Availability:
        self.probe_counts[kind] += 1
        state = self._availability[kind]
        if isinstance(state, Exception):
            raise state
        return state

    async def create_session(self, kind: CapabilityKind, options: dict[str, Any]) -> MockSession:
        if self.create_delay_s:
            await asyncio.sleep(self.create_delay_s)
        if self.fail_create:
            raise RuntimeError(f"mock {kind} session factory failure")
        session = MockSession(
            kind, options, self._responses.get(kind, ""),
            fail_calls=self.fail_calls, delay_s=self.call_delay_s,
        )
        self.sessions.append(session)
        return session

    def sessions_of(self, kind: CapabilityKind) -> list[MockSession]:
        return [s for s in self.sessions if s.kind is kind]

    @property
    def destroyed_count(self) -> int:
        return sum(s.destroy_count for s in self.sessions)
