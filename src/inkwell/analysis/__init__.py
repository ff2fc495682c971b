"""Analysis pipeline wiring: one owned instance of each collaborator per engine."""

from __future__ import annotations

from inkwell.analysis.engine import AnalysisEngine
from inkwell.analysis.fallback import FallbackAnalyzer
from inkwell.analysis.log_analyzer import LogAnalyzer
from inkwell.capabilities.registry import CapabilityRegistry
from inkwell.chunking.text_chunker import TextChunker
from inkwell.core.config import AppSettings
from inkwell.core.protocols import ICapabilityBackend
from inkwell.model_providers.mock_provider import MockCapabilityBackend
from inkwell.model_providers.null_provider import UnavailableBackend
from inkwell.persistence import create_persistence
from inkwell.pool.session_pool import SessionPool


def create_backend(settings: AppSettings) -> ICapabilityBackend:
    if settings.backend.provider == "unavailable":
        return UnavailableBackend()
    return MockCapabilityBackend()


def create_analyzers(
    settings: AppSettings | None = None,
    backend: ICapabilityBackend | None = None,
) -> tuple[AnalysisEngine, LogAnalyzer]:
    """Create a wired-up engine and log analyzer sharing one registry and pool.

    Returns:
        Tuple of (engine, log_analyzer).
    """
    if settings is None:
        settings = AppSettings()
    if backend is None:
        backend = create_backend(settings)

    registry = CapabilityRegistry(backend)
    pool = SessionPool(
        backend,
        max_per_kind=settings.pool.max_sessions_per_kind,
        acquire_timeout_ms=settings.pool.acquire_timeout_ms,
        idle_timeout_s=settings.pool.idle_timeout_s,
    )
    chunker = TextChunker(
        max_tokens=settings.chunker.max_tokens,
        overlap_tokens=settings.chunker.overlap_tokens,
        chars_per_token=settings.chunker.chars_per_token,
        boundary_window=settings.chunker.boundary_window,
    )
    fallback = FallbackAnalyzer()

    engine = AnalysisEngine(
        registry=registry,
        pool=pool,
        chunker=chunker,
        fallback=fallback,
        cache=create_persistence(settings),
        capability=settings.engine.capability,
        max_text_length=settings.engine.max_text_length,
    )
    log_analyzer = LogAnalyzer(registry=registry, pool=pool, fallback=fallback)
    return engine, log_analyzer
