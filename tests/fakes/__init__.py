"""Shared test doubles: re-export the in-process backends."""

from __future__ import annotations

from inkwell.model_providers.mock_provider import MockCapabilityBackend, MockSession
from inkwell.model_providers.null_provider import UnavailableBackend


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


__all__ = ["FakeClock", "MockCapabilityBackend", "MockSession", "UnavailableBackend"]
