"""
Centralised settings loader.

Every key can be set through the environment or a local `.env` file.
"""

from __future__ import annotations
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# ------------------------------------------------------------------ #
#  Master settings model
# ------------------------------------------------------------------ #
class _Settings(BaseSettings):
    # ─── runtime / DB ───────────────────────────────────────────────
    env_name: str = "local"
    log_level: str = "INFO"
    database_url: str | None = None

    # ─── Gemini ─────────────────────────────────────────────────────
    gemini_api_key: str | None = None
    gemini_model: str = "models/gemini-2.0-flash"
    gemini_temperature: float = 0.7
    gemini_max_output_tokens: int = 2000
    gemini_timeout_ms: int = Field(60_000, gt=0)
    gemini_max_retries: int = Field(5, ge=1)

    # ─── plan safety / drift ────────────────────────────────────────
    min_calories_male: int = 1500
    min_calories_female: int = 1200
    calorie_drift_tolerance: float = Field(0.10, ge=0)

    # allow other teammates’ env-vars without crashing
    model_config = SettingsConfigDict(
        extra="ignore", env_file=".env", env_file_encoding="utf-8"
    )


# ------------------------------------------------------------------ #
#  Cached singleton accessor
# ------------------------------------------------------------------ #
@lru_cache
def _cached() -> _Settings:  # pragma: no cover
    return _Settings()  # type: ignore[call-arg]


settings: _Settings = _cached()
