"""Health check endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request

from inkwell.core.types import JsonDict

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/ready")
async def ready(request: Request) -> JsonDict:
    """Report probed capability states and pool occupancy."""
    engine = request.app.state.engine
    return {
        "status": "ready",
        "capabilities": {kind.value: state.value for kind, state in engine.registry.states().items()},
        "pool": engine.pool.stats(),
    }
