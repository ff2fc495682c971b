"""Tests for CapabilityRegistry probing and readiness."""

from __future__ import annotations

import asyncio

import pytest

from inkwell.capabilities.registry import CapabilityRegistry
from inkwell.models.capability import Availability, CapabilityKind
from tests.fakes import MockCapabilityBackend, UnavailableBackend


def test_unprobed_registry_reports_unavailable():
    registry = CapabilityRegistry(MockCapabilityBackend())
    assert not registry.probed
    assert all(state is Availability.UNAVAILABLE for state in registry.states().values())


@pytest.mark.asyncio
async def test_probes_each_kind_exactly_once():
    backend = MockCapabilityBackend()
    registry = CapabilityRegistry(backend)

    await asyncio.gather(registry.probe(), registry.probe())
    await registry.probe()

    assert all(backend.probe_counts[kind] == 1 for kind in CapabilityKind)
    assert registry.is_ready(CapabilityKind.PROOFREADER)


@pytest.mark.asyncio
async def test_probe_failure_downgrades_only_that_kind():
    backend = MockCapabilityBackend()
    backend.set_availability(CapabilityKind.WRITER, RuntimeError("probe exploded"))
    registry = CapabilityRegistry(backend)

    states = await registry.probe()

    assert states[CapabilityKind.WRITER] is Availability.UNAVAILABLE
    assert registry.is_ready(CapabilityKind.PROOFREADER)
    assert not registry.is_available(CapabilityKind.WRITER)


@pytest.mark.asyncio
async def test_downloadable_is_available_but_not_ready():
    backend = MockCapabilityBackend()
    backend.set_availability(CapabilityKind.LANGUAGE_MODEL, Availability.DOWNLOADABLE)
    registry = CapabilityRegistry(backend)
    await registry.probe()

    assert registry.is_available(CapabilityKind.LANGUAGE_MODEL)
    assert not registry.is_ready(CapabilityKind.LANGUAGE_MODEL)


@pytest.mark.asyncio
async def test_unavailable_backend_has_nothing_ready():
    registry = CapabilityRegistry(UnavailableBackend())
    await registry.probe()
    assert not any(registry.is_available(kind) for kind in CapabilityKind)
