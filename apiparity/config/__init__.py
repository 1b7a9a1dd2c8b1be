"""Configuration management for apiparity."""

from apiparity.config.settings import REQUIRED_FIELDS, ParityConfig, load_config

__all__ = ["REQUIRED_FIELDS", "ParityConfig", "load_config"]
