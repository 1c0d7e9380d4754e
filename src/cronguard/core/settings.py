"""Environment-driven settings for cronguard.

Process-wide defaults that are not part of any single task's policy:
logging setup and the defaults ``schedule()`` applies to new tasks.

Examples:
    >>> from cronguard.core.settings import CronGuardSettings
    >>> CronGuardSettings().timezone
    'UTC'

    Override from the environment::

        CRONGUARD_LOG_LEVEL=DEBUG CRONGUARD_TIMEZONE=Europe/Berlin python app.py

Tags:
    settings, configuration, pydantic, environment, cronguard
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CronGuardSettings(BaseSettings):
    """Settings shared by every task in the process.

    Fields
    ──────
    log_level     : Structlog log level
    log_json      : Force JSON (True) or console (False) output; None = auto
    service       : Service name stamped on every log line
    timezone      : Default timezone for cron evaluation
    history_limit : Default run-history size for tasks built by ``schedule()``
    """

    model_config = SettingsConfigDict(
        env_prefix="CRONGUARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None
    service: str = "cronguard"

    # ── Task defaults ────────────────────────────────────────────
    timezone: str = "UTC"
    history_limit: int = Field(default=10, ge=1)


@lru_cache(maxsize=1)
def get_settings() -> CronGuardSettings:
    """Return the process-wide settings instance."""
    return CronGuardSettings()
