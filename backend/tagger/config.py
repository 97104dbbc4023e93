"""
Tagger configuration.

Resolution order per setting:
1. Explicit keyword argument to load_settings()
2. Environment variable (TAGGER_*)
3. Built-in default

Settings are resolved once at startup. No file-based config, no
background reload.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .ledger.variants import RecordVariant
from .parsers.match_url import DEFAULT_MATCH_HOST
from .persistence.storage import DEFAULT_STORAGE_DIR
from .roster import DEFAULT_ROSTER_FILE

logger = logging.getLogger(__name__)


DEFAULT_HOST = "127.0.0.1"  # Localhost only by default
DEFAULT_PORT = 8085

_ENV_FIELDS = {
    "variant": "TAGGER_VARIANT",
    "storage_dir": "TAGGER_STORAGE_DIR",
    "match_host": "TAGGER_MATCH_HOST",
    "roster_path": "TAGGER_ROSTER_PATH",
    "host": "TAGGER_HOST",
    "port": "TAGGER_PORT",
    "log_level": "TAGGER_LOG_LEVEL",
}


class ConfigError(Exception):
    """Raised when configuration values are invalid."""
    pass


class TaggerSettings(BaseModel):
    """Resolved runtime settings."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    variant: RecordVariant = RecordVariant.EVENT
    storage_dir: Path = DEFAULT_STORAGE_DIR
    match_host: str = DEFAULT_MATCH_HOST
    roster_path: Path = DEFAULT_ROSTER_FILE
    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    log_level: str = "INFO"

    @field_validator("match_host")
    @classmethod
    def validate_match_host(cls, v: str) -> str:
        """Host must be a bare hostname, no scheme or path."""
        v = v.strip().lower()
        if not v or "/" in v or ":" in v:
            raise ValueError("match_host must be a bare hostname")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return v

    @field_validator("storage_dir", "roster_path", mode="after")
    @classmethod
    def expand_user(cls, v: Path) -> Path:
        return v.expanduser()


def load_settings(env: Optional[Mapping[str, str]] = None, **overrides: Any) -> TaggerSettings:
    """
    Resolve settings from overrides, environment and defaults.

    Args:
        env: Environment mapping (defaults to os.environ)
        **overrides: Explicit values; None values are ignored

    Raises:
        ConfigError: If any value is invalid
    """
    env = os.environ if env is None else env

    values: Dict[str, Any] = {}
    for name, var in _ENV_FIELDS.items():
        raw = env.get(var)
        if raw is not None and raw.strip():
            values[name] = raw.strip()

    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        settings = TaggerSettings(**values)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    logger.debug(f"Settings resolved: {settings}")
    return settings
