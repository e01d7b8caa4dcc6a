"""
Application configuration using Pydantic-Settings.
All settings can be overridden via environment variables or .env file.

Settings are loaded once at startup through load_settings(), which returns
a SettingsResult instead of raising, so the caller decides how to fail.
"""

from dataclasses import dataclass, field
from typing import Literal, Optional

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings

HandlerMode = Literal["archive", "inference", "direct"]
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Which settings each handler mode cannot run without
REQUIRED_BY_MODE = {
    "archive":   ("DATABASE_URL", "ML_ENDPOINT_URL", "ML_API_KEY", "BLOB_CONNECTION_STRING"),
    "inference": ("DATABASE_URL", "ML_ENDPOINT_URL", "ML_API_KEY"),
    "direct":    ("DATABASE_URL",),
}


class Settings(BaseSettings):
    # ── Database ──────────────────────────────────────────────────────────
    DATABASE_URL: Optional[str] = None

    # ── Inference endpoint ────────────────────────────────────────────────
    ML_ENDPOINT_URL: Optional[str] = None
    ML_API_KEY: Optional[str] = None
    INFERENCE_TIMEOUT_SECONDS: Optional[float] = None   # None = httpx default

    # ── Blob storage ──────────────────────────────────────────────────────
    BLOB_CONNECTION_STRING: Optional[str] = None
    BLOB_CONTAINER_NAME: str = "machine-images"

    # ── Handler ───────────────────────────────────────────────────────────
    HANDLER_MODE: HandlerMode = "archive"
    SENTINEL_CLASS: str = "class1"     # predicted class that means "on"

    # ── Security ──────────────────────────────────────────────────────────
    API_KEY: Optional[str] = None   # Set in .env to enable auth on read endpoints

    # ── Logging ───────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"

    @field_validator(
        "DATABASE_URL", "ML_ENDPOINT_URL", "ML_API_KEY", "BLOB_CONNECTION_STRING", "API_KEY",
        mode="before",
    )
    @classmethod
    def _blank_is_missing(cls, value):
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _known_log_level(cls, value):
        if isinstance(value, str):
            value = value.strip().upper()
            if value not in LOG_LEVELS:
                raise ValueError(f"must be one of {', '.join(LOG_LEVELS)}")
        return value

    def missing_required(self) -> list[str]:
        """Names of settings the current HANDLER_MODE needs but are unset."""
        return [name for name in REQUIRED_BY_MODE[self.HANDLER_MODE] if not getattr(self, name)]

    class Config:
        env_file = ".env"
        extra = "ignore"


@dataclass
class SettingsResult:
    settings: Optional[Settings] = None
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.settings is not None and not self.errors


def load_settings(**overrides) -> SettingsResult:
    """
    Read and validate configuration once.
    Never raises for bad configuration — problems are listed in result.errors.
    """
    try:
        settings = Settings(**overrides)
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(part) for part in err['loc']) or 'settings'}: {err['msg']}"
            for err in exc.errors()
        ]
        return SettingsResult(errors=errors)

    missing = settings.missing_required()
    if missing:
        return SettingsResult(errors=[
            f"{name}: required when HANDLER_MODE={settings.HANDLER_MODE}" for name in missing
        ])
    return SettingsResult(settings=settings)
