"""Configuration utilities for the intake questionnaire.

This module loads application configuration with the following rules:
- Primary source: `intake_config.json` at the project root.
- Overrides: environment variables, then optional text files under `config/`.
- Validation: Pydantic models enforce required fields and value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator


CONFIG_DIR = Path("config")
ROOT_CONFIG = Path("intake_config.json")
DEFAULT_USER_HEADER = "X-User-Id"
logger = logging.getLogger(__name__)


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


class DatabaseConfig(BaseModel):
    dsn: Optional[str] = None

    @field_validator("dsn")
    @classmethod
    def dsn_must_be_non_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("database.dsn must be a non-empty string when set")
        return v


class AutoSaveConfig(BaseModel):
    delay_ms: int = Field(default=500, gt=0)
    saved_display_ms: int = Field(default=2000, gt=0)
    error_display_ms: int = Field(default=3000, gt=0)

    @property
    def delay(self) -> float:
        return self.delay_ms / 1000.0

    @property
    def saved_display(self) -> float:
        return self.saved_display_ms / 1000.0

    @property
    def error_display(self) -> float:
        return self.error_display_ms / 1000.0


class AuthConfig(BaseModel):
    user_header: str = DEFAULT_USER_HEADER

    @field_validator("user_header")
    @classmethod
    def header_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("auth.user_header must be a non-empty string")
        return v.strip()


class ClientConfig(BaseModel):
    base_url: str = "http://localhost:8000/api/v1"
    timeout_s: float = Field(default=10.0, gt=0)


class AppConfig(BaseModel):
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    autosave: AutoSaveConfig = Field(default_factory=AutoSaveConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            data = json.loads(path.read_text(encoding="utf-8"))
            return data if isinstance(data, dict) else {}
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) intake_config.json at project root (primary base)
    4) Safe defaults for development
    """

    base = _read_json_file(ROOT_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        return str(cur) if cur is not None else default

    dsn = _env("DATABASE_URL") or _read_config_file("database.url") or _base("database.dsn")

    delay_text = _env("AUTOSAVE_DELAY_MS") or _read_config_file("autosave.delay_ms") or _base("autosave.delay_ms", "500")
    saved_text = (
        _env("AUTOSAVE_SAVED_DISPLAY_MS")
        or _read_config_file("autosave.saved_display_ms")
        or _base("autosave.saved_display_ms", "2000")
    )
    error_text = (
        _env("AUTOSAVE_ERROR_DISPLAY_MS")
        or _read_config_file("autosave.error_display_ms")
        or _base("autosave.error_display_ms", "3000")
    )

    user_header = _env("AUTH_USER_HEADER") or _read_config_file("auth.user_header") or _base("auth.user_header", DEFAULT_USER_HEADER)

    base_url = (
        _env("INTAKE_API_BASE_URL")
        or _read_config_file("client.base_url")
        or _base("client.base_url", "http://localhost:8000/api/v1")
    )
    timeout_text = _env("INTAKE_API_TIMEOUT_S") or _read_config_file("client.timeout_s") or _base("client.timeout_s", "10")

    try:
        cfg = AppConfig(
            database=DatabaseConfig(dsn=dsn),
            autosave=AutoSaveConfig(
                delay_ms=str(delay_text).strip(),
                saved_display_ms=str(saved_text).strip(),
                error_display_ms=str(error_text).strip(),
            ),
            auth=AuthConfig(user_header=str(user_header)),
            client=ClientConfig(base_url=str(base_url).strip(), timeout_s=str(timeout_text).strip()),
        )
        return cfg
    except PydanticValidationError as e:
        logger.error("Invalid application configuration: %s", e)
        raise


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "AutoSaveConfig",
    "AuthConfig",
    "ClientConfig",
    "DEFAULT_USER_HEADER",
    "load_config",
]
