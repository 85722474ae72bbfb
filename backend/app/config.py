"""Media backend application configuration.

Loads settings from two YAML files:
  * media.settings.yaml  — non-secret configuration
  * media.secrets.yaml   — secrets (never committed)

Both files are optional; missing files fall back to model defaults.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

SETTINGS_FILE = Path("media.settings.yaml")
SECRETS_FILE  = Path("media.secrets.yaml")


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.warning("Config file not found: %s", path)
        return {}
    with path.open(encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


# ---------------------------------------------------------------------------
# Secrets models
# ---------------------------------------------------------------------------


class AwsSecrets(BaseModel):
    access_key_id:     Optional[str] = None
    secret_access_key: Optional[str] = None
    session_token:     Optional[str] = None


class Secrets(BaseModel):
    aws: AwsSecrets = Field(default_factory=AwsSecrets)


# ---------------------------------------------------------------------------
# Settings models
# ---------------------------------------------------------------------------


class ServerSettings(BaseModel):
    host:  str  = "0.0.0.0"
    port:  int  = 8000
    debug: bool = False


class LoggingSettings(BaseModel):
    level: str = "info"


class StorageSettings(BaseModel):
    """Remote object store (any S3-compatible provider)."""
    bucket:          str           = "media-uploads"
    region:          str           = "us-east-1"
    endpoint_url:    Optional[str] = None
    public_base_url: Optional[str] = None


class UploadSettings(BaseModel):
    """Retry, timeout and fallback policy for the upload pipeline."""
    max_retries:         int   = 3
    retry_delay_seconds: float = 2.0
    timeout_seconds:     float = 60.0
    fallback_dir:        str   = "./uploads/fallback"
    fallback_url_prefix: str   = "/fallback/"

    @field_validator("max_retries")
    @classmethod
    def _at_least_one_attempt(cls, value: int) -> int:
        if value < 1:
            raise ValueError("max_retries must be at least 1")
        return value

    @field_validator("retry_delay_seconds", "timeout_seconds")
    @classmethod
    def _non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("delays and timeouts must not be negative")
        return value

    @field_validator("fallback_url_prefix")
    @classmethod
    def _slash_terminated(cls, value: str) -> str:
        if not value.startswith("/"):
            value = "/" + value
        if not value.endswith("/"):
            value = value + "/"
        return value


class AppSettings(BaseModel):
    server:  ServerSettings  = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    upload:  UploadSettings  = Field(default_factory=UploadSettings)
    secrets: Secrets         = Field(default_factory=Secrets)


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------


def load_config(
    settings_path: Optional[Path] = None,
    secrets_path: Optional[Path] = None,
) -> AppSettings:
    """Load and merge settings + secrets into a single *AppSettings* object.

    A relative ``upload.fallback_dir`` is resolved against the directory that
    holds the settings file.
    """
    settings_file = Path(settings_path) if settings_path else SETTINGS_FILE
    secrets_file = Path(secrets_path) if secrets_path else SECRETS_FILE

    settings_data = _load_yaml(settings_file)
    secrets_data  = _load_yaml(secrets_file)

    # Merge: secrets live under the "secrets" key in AppSettings
    settings_data["secrets"] = secrets_data

    app_settings = AppSettings(**settings_data)

    fallback_dir = Path(app_settings.upload.fallback_dir)
    if not fallback_dir.is_absolute():
        base_dir = settings_file.resolve().parent
        app_settings.upload.fallback_dir = str(base_dir / fallback_dir)

    logger.info(
        "Settings loaded (bucket=%s, max_retries=%d, fallback_dir=%s)",
        app_settings.storage.bucket,
        app_settings.upload.max_retries,
        app_settings.upload.fallback_dir,
    )
    return app_settings


_config: Optional[AppSettings] = None


def get_config() -> AppSettings:
    """Return the process-wide configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Drop the cached configuration (for testing)."""
    global _config
    _config = None
