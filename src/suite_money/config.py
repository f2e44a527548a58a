from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENV_ROUNDING_MODE = "SUITE_MONEY_ROUNDING_MODE"
ENV_WARN_ON_INCONSISTENCY = "SUITE_MONEY_WARN_ON_INCONSISTENCY"
ENV_REGISTRY_PATH = "SUITE_MONEY_REGISTRY_PATH"

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Process-wide defaults read from the environment (and an optional `.env` file).

    Attributes:
        rounding_mode (str | None): Name of the rounding mode used when no explicit or
            scoped mode is given. None means exact arithmetic is required.
        warn_on_inconsistency (bool): Whether registry index inconsistencies are reported to
            the diagnostic hook by default.
        registry_path (str | None): Path of a JSON registry data file used by `load_registry`.
    """

    rounding_mode: str | None = None
    warn_on_inconsistency: bool = False
    registry_path: str | None = None


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in _TRUE_VALUES


def _env_text(name: str) -> str | None:
    value = os.getenv(name, "").strip()
    return value or None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process.

    Returns:
        Settings: Values from environment variables; `.env` in the working directory is
        loaded first without overriding variables that are already set.
    """
    load_dotenv()
    settings = Settings(
        rounding_mode=_env_text(ENV_ROUNDING_MODE),
        warn_on_inconsistency=_env_flag(ENV_WARN_ON_INCONSISTENCY),
        registry_path=_env_text(ENV_REGISTRY_PATH),
    )
    logger.debug(f"Loaded settings: {settings}")
    return settings


def reset_settings() -> None:
    """Forget cached settings so the next `get_settings` call reads the environment again."""
    get_settings.cache_clear()
