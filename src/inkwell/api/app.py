"""FastAPI application with lifespan and router mounting."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from inkwell.analysis import create_analyzers
from inkwell.api.routes import analysis, health
from inkwell.core.config import AppSettings
from inkwell.core.logging import configure_logging
from inkwell.core.protocols import ICapabilityBackend


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build one engine per app and destroy its sessions on shutdown."""
    settings: AppSettings = app.state.settings
    configure_logging(settings.log_level)

    engine, log_analyzer = create_analyzers(settings, app.state.backend)
    app.state.engine = engine
    app.state.log_analyzer = log_analyzer
    await engine.registry.probe()
    yield
    engine.close()


def create_app(
    settings: AppSettings | None = None,
    backend: ICapabilityBackend | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Inkwell On-Device Analysis",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings or AppSettings()
    app.state.backend = backend
    app.include_router(health.router)
    app.include_router(analysis.router)
    return app
