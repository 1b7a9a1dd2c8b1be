"""Configuration settings and loading."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from apiparity.errors import ConfigurationError, ErrorCode
from apiparity.models import CompareMode

# field name -> environment variable, in the order diagnostics are printed
REQUIRED_FIELDS = {
    "collection_id": "COLLECTION_ID",
    "api_key": "API_KEY",
    "old_url": "OLD_URL",
    "new_url": "NEW_URL",
}

DOCKER_HOST = "host.docker.internal"


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes")


class ParityConfig(BaseSettings):
    """Process-wide configuration, read once at startup."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    old_url: str | None = None
    new_url: str | None = None
    collection_id: str | None = None
    request_id: str | None = None
    api_key: str | None = None
    sort_arrays: bool = False
    extended_logs: bool = False
    mode: CompareMode | None = None
    timeout: float = 30.0
    collection_api_url: str = "https://api.postman.com"
    docker_host_rewrite: bool = False
    json_logs: bool = False

    @field_validator("old_url", "new_url", "collection_api_url", mode="before")
    @classmethod
    def validate_url(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = str(v).strip()
        if not v:
            return None
        if not v.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return v

    @field_validator("collection_id", "request_id", "api_key", mode="before")
    @classmethod
    def blank_as_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v

    def missing_required(self) -> list[str]:
        """Environment names of required inputs that are not set."""
        return [env for name, env in REQUIRED_FIELDS.items() if getattr(self, name) is None]

    def validate_required(self) -> None:
        """Raise ConfigurationError listing every missing required input."""
        missing = self.missing_required()
        if missing:
            raise ConfigurationError(
                missing=[f"{env} is not set" for env in missing],
            )

    def base_urls(self) -> tuple[str, str]:
        """The old and new base URLs, rewritten for Docker when enabled.

        Raises:
            ConfigurationError: If either base URL is missing.
        """
        if self.old_url is None or self.new_url is None:
            raise ConfigurationError(
                missing=[
                    f"{env} is not set"
                    for env, value in (("OLD_URL", self.old_url), ("NEW_URL", self.new_url))
                    if value is None
                ]
            )
        if not self.docker_host_rewrite:
            return self.old_url, self.new_url
        return (
            self.old_url.replace("localhost", DOCKER_HOST),
            self.new_url.replace("localhost", DOCKER_HOST),
        )


def load_config(config_path: str | Path | None = None, **overrides: Any) -> ParityConfig:
    """Load configuration from file and environment.

    Priority: overrides (CLI args) > env vars > config file > defaults
    """
    config_data: dict[str, Any] = {}

    if config_path is not None:
        config_path = Path(config_path)
        if config_path.exists():
            with open(config_path) as f:
                config_data = yaml.safe_load(f) or {}

    try:
        config_data.update(_get_env_overrides())
        config_data.update({k: v for k, v in overrides.items() if v is not None})
        return ParityConfig(**config_data)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid configuration: {e}",
            error_code=ErrorCode.CONFIG_INVALID,
        ) from e


def _get_env_overrides() -> dict[str, Any]:
    """Get configuration overrides from environment variables."""
    overrides: dict[str, Any] = {}

    env_mappings = {
        "OLD_URL": "old_url",
        "NEW_URL": "new_url",
        "COLLECTION_ID": "collection_id",
        "REQUEST_ID": "request_id",
        "API_KEY": "api_key",
        "SORT_ARRAYS": ("sort_arrays", _parse_bool),
        "EXTENDED_LOGS": ("extended_logs", _parse_bool),
        "COMPARE_MODE": ("mode", lambda x: x.strip().lower()),
        "TIMEOUT": ("timeout", float),
        "COLLECTION_API_URL": "collection_api_url",
        "DOCKER_HOST_REWRITE": ("docker_host_rewrite", _parse_bool),
        "JSON_LOGS": ("json_logs", _parse_bool),
    }

    for env_key, config_key in env_mappings.items():
        value = os.environ.get(env_key)
        if value is not None:
            if isinstance(config_key, tuple):
                key, converter = config_key
                overrides[key] = converter(value)
            else:
                overrides[config_key] = value

    return overrides
