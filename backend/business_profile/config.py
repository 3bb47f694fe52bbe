"""Settings — environment-driven configuration for the editor API (pydantic-settings).

Invariants:
    - Secrets (database password, Anthropic key) only ever come from the environment
    - get_settings() is cached: one Settings instance per process
    - An empty anthropic_api_key disables generation; every other feature still works

Design Decisions:
    - pydantic-settings over os.environ lookups: typed, validated, .env aware
    - Defaults match the docker-compose database so a fresh checkout starts as is
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # ── persistence ──
    database_url: str = "postgresql+asyncpg://profile:profile@db:5432/business_profile"
    database_pool_size: int = 20
    database_max_overflow: int = 10

    # ── generation ──
    anthropic_api_key: str = ""
    anthropic_max_retries: int = 3
    anthropic_timeout_seconds: int = 60
    anthropic_base_delay_ms: int = 1000
    anthropic_max_delay_ms: int = 30_000
    generation_model: str = "claude-sonnet-4-5"
    generation_max_tokens: int = 2048

    # ── editor ──
    # Undrained notifications kept per session before the oldest are dropped
    event_buffer_size: int = 500

    # ── http / logging ──
    cors_origins: list[str] = ["http://localhost:5173"]
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("database_url", mode="before")
    @classmethod
    def use_asyncpg_driver(cls, v: str) -> str:
        """Hosted Postgres hands out postgresql:// URLs; the async engine needs asyncpg."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return "postgresql+asyncpg://" + v[len("postgresql://"):]
        return v

    @property
    def generation_enabled(self) -> bool:
        return bool(self.anthropic_api_key)


@lru_cache
def get_settings() -> Settings:
    return Settings()
