import logging
import os
from dataclasses import dataclass


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() not in ("0", "false", "no", "off", "")


def _env_log_level(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    level = logging.getLevelName(raw.strip().upper())
    return level if isinstance(level, int) else default


@dataclass(frozen=True)
class AppConfig:
    """
    Process-wide knobs, read once from STRETCHPY_* environment variables.
    """

    max_workers: int
    preview_render_size: int
    log_level: int
    cache_enabled: bool


APP_CONFIG = AppConfig(
    max_workers=max(1, _env_int("STRETCHPY_MAX_WORKERS", (os.cpu_count() or 1) - 1)),
    preview_render_size=max(1, _env_int("STRETCHPY_PREVIEW_SIZE", 1200)),
    log_level=_env_log_level("STRETCHPY_LOG_LEVEL", logging.INFO),
    cache_enabled=_env_bool("STRETCHPY_CACHE_ENABLED", True),
)
