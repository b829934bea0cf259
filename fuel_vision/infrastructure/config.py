"""Configuration utilities for infrastructure layer."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

import structlog
from dotenv import load_dotenv

DEFAULT_VISION_ENDPOINT = "https://api.openai.com/v1/chat/completions"
DEFAULT_VISION_MODEL = "gpt-4o"


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


@dataclass(frozen=True)
class VisionSettings:
    """
    Vision client settings.

    Attributes:
        api_key: Provider API key (None when not configured)
        endpoint: Chat-completion endpoint URL
        model: Vision-capable model name
        max_tokens: Completion token cap
        timeout_seconds: Per-attempt HTTP timeout
        max_attempts: Total attempts including the first
        max_dimension: Longest image side sent to the provider
    """

    api_key: Optional[str] = None
    endpoint: str = DEFAULT_VISION_ENDPOINT
    model: str = DEFAULT_VISION_MODEL
    max_tokens: int = 1000
    timeout_seconds: float = 60.0
    max_attempts: int = 3
    max_dimension: int = 1024


@dataclass(frozen=True)
class EntitlementSettings:
    """Free-tier quota settings."""

    free_scans_per_week: int = 3


def get_vision_settings() -> VisionSettings:
    """
    Load vision settings from the environment.

    Reads a local .env first (existing variables win).

    Example .env:
        OPENAI_API_KEY=sk-...
        FUEL_VISION_MODEL=gpt-4o
        FUEL_VISION_MAX_ATTEMPTS=3

    Returns:
        VisionSettings with defaults for unset variables
    """
    load_dotenv()

    return VisionSettings(
        api_key=os.getenv("OPENAI_API_KEY") or None,
        endpoint=os.getenv("FUEL_VISION_ENDPOINT", DEFAULT_VISION_ENDPOINT),
        model=os.getenv("FUEL_VISION_MODEL", DEFAULT_VISION_MODEL),
        max_tokens=_get_int("FUEL_VISION_MAX_TOKENS", 1000),
        timeout_seconds=_get_float("FUEL_VISION_TIMEOUT", 60.0),
        max_attempts=_get_int("FUEL_VISION_MAX_ATTEMPTS", 3),
        max_dimension=_get_int("FUEL_VISION_MAX_DIMENSION", 1024),
    )


def get_entitlement_settings() -> EntitlementSettings:
    """Load quota settings from the environment."""
    load_dotenv()
    return EntitlementSettings(free_scans_per_week=_get_int("FUEL_FREE_SCANS_PER_WEEK", 3))


def configure_logging() -> None:
    """
    Apply LOG_LEVEL (default INFO) to structlog and stdlib logging.

    Events below the level are dropped before any processor runs.
    """
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(level=level)
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )
