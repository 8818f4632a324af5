"""
Configuration management with pydantic-settings.

All tunables of the extraction engine are read from environment
variables (or a local .env file) once at import time. Every setting has
a safe default so the engine works out of the box.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables / .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Fetch strategies ──────────────────────────────────────────────
    rendering_enabled: bool = Field(
        default=True,
        description="Allow the headless-browser strategy for stores that need it.",
    )
    generic_fallback_enabled: bool = Field(
        default=True,
        description="Try store-agnostic heuristics on unregistered domains.",
    )

    # ── Static HTTP fetch ─────────────────────────────────────────────
    request_timeout: float = Field(
        default=15.0,
        gt=0,
        description="Hard timeout (seconds) for the static HTTP fetch.",
    )
    max_redirects: int = Field(default=5, ge=0)
    impersonate: str = Field(
        default="chrome120",
        description="curl_cffi browser fingerprint to impersonate.",
    )
    accept_language: str = Field(default="en-US,en;q=0.9")

    # ── Headless rendering ────────────────────────────────────────────
    headless: bool = Field(default=True)
    render_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Navigation timeout (seconds) for the rendering fetch.",
    )
    price_wait_timeout: float = Field(
        default=5.0,
        ge=0,
        description="Best-effort wait (seconds) for the price element to appear.",
    )

    # ── Misc ──────────────────────────────────────────────────────────
    max_concurrency: int = Field(default=5, ge=1)
    log_level: str = Field(default="INFO")


# Singleton instance — import this everywhere
settings = Settings()
