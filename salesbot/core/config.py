"""Application settings and configuration helpers."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strongly-typed configuration sourced from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    app_name: str = Field(default="AI Salesman Assistant", description="Human-readable service name.")
    environment: str = Field(default="local", description="Deployment environment identifier.")
    log_level: str = Field(default="INFO", description="Application log level.")

    llm_api_key: str | None = Field(default=None, description="API key for the completion provider.")
    llm_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL of an OpenAI-compatible chat completions API.",
    )
    llm_model: str = Field(default="gpt-4o-mini", description="Completion model identifier.")
    llm_native_functions: bool | None = Field(
        default=None,
        description=(
            "Whether the model supports native function calling. "
            "When unset, models with 'claude' in their name use text-pattern mode."
        ),
    )
    llm_temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="Reply sampling temperature.")
    llm_max_tokens: int = Field(default=1000, ge=16, description="Reply output-token budget.")
    llm_timeout_seconds: float = Field(default=30.0, gt=0, description="HTTP timeout for completion calls.")
    llm_min_interval_seconds: float = Field(
        default=0.0,
        ge=0.0,
        description="Minimum interval (seconds) between completion calls.",
    )
    openrouter_referer: str | None = Field(
        default=None,
        description="Referer header sent when the base URL points at OpenRouter.",
    )
    openrouter_title: str | None = Field(
        default="AI Salesman Assistant",
        description="Title header sent when the base URL points at OpenRouter.",
    )

    redis_url: str | None = Field(
        default=None,
        description="Redis URL for the TTL cache. If omitted, an in-process cache is used.",
    )
    catalog_db_path: Path = Field(
        default=Path("db/catalog.db"),
        description="SQLite catalog database path.",
    )
    seed_dir: Path = Field(
        default=Path("/app/db-seed"),
        description="Directory holding seed data copied into place on first start.",
    )

    context_ttl_seconds: int = Field(default=3600, ge=1, description="Session context cache TTL.")
    knowledge_ttl_seconds: int = Field(default=1800, ge=1, description="Knowledge node cache TTL.")
    response_cache_ttl_seconds: int = Field(default=3600, ge=1, description="Whole-response cache TTL.")
    coupon_max_discount: float = Field(
        default=20.0,
        ge=0.0,
        description="Largest percentage discount the built-in coupon issuer grants.",
    )

    frontend_origin: AnyHttpUrl | None = Field(
        default=None,
        description="Allowed storefront origin (CORS). If omitted, defaults to localhost dev servers.",
    )
    additional_origins: List[AnyHttpUrl] = Field(
        default_factory=list,
        description="Additional allowed CORS origins for multi-store deployments.",
    )

    @property
    def cors_origins(self) -> list[str]:
        """Return the full list of allowed CORS origins."""

        origins: list[str] = []

        if self.frontend_origin:
            origins.append(str(self.frontend_origin).rstrip("/"))
        else:
            origins.extend([
                "http://localhost:3000",
                "http://127.0.0.1:3000",
            ])

        for origin in self.additional_origins:
            origins.append(str(origin).rstrip("/"))

        # Deduplicate while preserving order
        return list(dict.fromkeys(origins))

    @property
    def llm_enabled(self) -> bool:
        return bool(self.llm_api_key)

    @property
    def native_functions(self) -> bool:
        """Resolve the function-calling capability flag for the configured model."""

        if self.llm_native_functions is not None:
            return self.llm_native_functions
        return "claude" not in self.llm_model.lower()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()
