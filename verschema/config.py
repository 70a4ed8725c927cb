"""
Configuration for verschema.

Settings come from environment variables prefixed with ``VERSCHEMA_``.

Invariants:
    - All settings have defaults suitable for local use
    - max_version bounds how many modules one compilation may allocate

How to change safely:
    - Add new settings with defaults that keep existing schemas compiling
"""

from __future__ import annotations

import logging

import json_log_formatter
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class CompilerSettings(BaseSettings):
    """Compiler configuration."""

    # Upper bound on any add/rem literal, and so on the number of modules
    max_version: int = Field(default=1024, ge=1)

    log_level: str = Field(default="INFO")
    log_format: str = Field(default="text", description="text or json")

    model_config = {"env_prefix": "VERSCHEMA_"}

    @field_validator("log_format")
    @classmethod
    def _check_log_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("text", "json"):
            raise ValueError(f"Invalid log_format '{value}'. Must be one of: text, json")
        return value


def setup_logging(settings: CompilerSettings) -> None:
    """Configure root logging based on settings.

    Args:
        settings: Compiler settings
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        formatter: logging.Formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]
