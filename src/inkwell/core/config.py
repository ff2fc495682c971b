"""Application configuration using pydantic-settings with grouped env prefixes."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings

from inkwell.models.capability import CapabilityKind


class BackendConfig(BaseSettings):
    """Capability backend selection."""

    model_config = {"env_prefix": "INKWELL_BACKEND_"}

    provider: Literal["mock", "unavailable"] = "mock"


class PoolConfig(BaseSettings):
    """Session pool sizing and timeouts."""

    model_config = {"env_prefix": "INKWELL_POOL_"}

    max_sessions_per_kind: int = 3
    acquire_timeout_ms: int = 5000
    idle_timeout_s: float = 60.0


class ChunkerConfig(BaseSettings):
    """Token budget used when splitting long text."""

    model_config = {"env_prefix": "INKWELL_CHUNKER_"}

    max_tokens: int = 900  # leaves room for system prompts
    overlap_tokens: int = 50
    chars_per_token: int = 4
    boundary_window: int = 100


class CacheConfig(BaseSettings):
    """In-memory result cache configuration."""

    model_config = {"env_prefix": "INKWELL_CACHE_"}

    max_entries: int = 100
    enabled: bool = True


class EngineConfig(BaseSettings):
    """Analysis engine limits."""

    model_config = {"env_prefix": "INKWELL_ENGINE_"}

    max_text_length: int = 5000
    capability: CapabilityKind = CapabilityKind.PROOFREADER


class FeatureFlags(BaseSettings):
    """Master switch plus per-surface toggles. Read-only from the engine's side."""

    model_config = {"env_prefix": "INKWELL_FLAGS_"}

    enabled: bool = False
    basic_grammar: bool = True
    tone_detection: bool = False
    log_analysis: bool = True

    def is_feature_enabled(self, name: str) -> bool:
        return self.enabled and getattr(self, name, False) is True


class AppSettings(BaseSettings):
    """Root application settings aggregating all sub-configs."""

    model_config = {"env_prefix": "INKWELL_"}

    environment: Literal["dev", "uat", "prod"] = "dev"
    log_level: str = "INFO"

    backend: BackendConfig = BackendConfig()
    pool: PoolConfig = PoolConfig()
    chunker: ChunkerConfig = ChunkerConfig()
    cache: CacheConfig = CacheConfig()
    engine: EngineConfig = EngineConfig()
    flags: FeatureFlags = FeatureFlags()
