"""Inkwell exception hierarchy."""

from __future__ import annotations


class InkwellError(Exception):
    """Base exception for all Inkwell errors."""


class CapabilityUnavailableError(InkwellError):
    """No usable backend for a capability kind."""

    def __init__(self, kind: str, state: str = "unavailable") -> None:
        self.kind = kind
        self.state = state
        super().__init__(f"Capability {kind} is not ready (state={state})")


class PoolExhaustedError(InkwellError):
    """Timed out waiting for a free session slot."""

    def __init__(self, kind: str, timeout_ms: int) -> None:
        self.kind = kind
        self.timeout_ms = timeout_ms
        super().__init__(f"No {kind} session became free within {timeout_ms}ms")


class SessionCreationError(InkwellError):
    """The backend failed to construct a session."""

    def __init__(self, kind: str, message: str) -> None:
        self.kind = kind
        super().__init__(f"Failed to create {kind} session: {message}")


class CapabilityCallFailedError(InkwellError):
    """A capability call raised."""

    def __init__(self, kind: str, chunk_index: int, message: str) -> None:
        self.kind = kind
        self.chunk_index = chunk_index
        super().__init__(f"{kind} call failed on chunk {chunk_index}: {message}")


class MalformedResponseError(CapabilityCallFailedError):
    """A capability response could not be normalized."""
