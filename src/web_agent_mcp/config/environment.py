"""Environment configuration and validation."""

import os
from typing import Optional, Tuple

from dotenv import load_dotenv, find_dotenv

from ..constants import (
    DEFAULT_VIEWPORT,
    DEFAULT_USER_AGENT,
    CONSOLE_BUFFER_CAPACITY,
    DIALOG_BUFFER_CAPACITY,
    RETENTION_MAX_FILES,
    RETENTION_MIN_KEEP,
    RETENTION_MAX_AGE_DAYS,
)

import logging
logger = logging.getLogger(__name__)


_DOTENV_LOADED = False

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


def load_env() -> Optional[str]:
    """Load the nearest .env (searched from the working directory) once per process."""
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return None
    _DOTENV_LOADED = True
    path = find_dotenv(filename=".env", usecwd=True)
    if path:
        load_dotenv(path, override=True)
        logger.debug(f"Loaded environment from {path}")
    return path or None


def _flag(name: str, default: bool) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise EnvironmentError(f"{name} must be a boolean flag (1/0, true/false), got {raw!r}.")


def _number(name: str, default, cast=int, minimum=0):
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise EnvironmentError(f"{name} must be a number, got {raw!r}.") from None
    if value < minimum:
        raise EnvironmentError(f"{name} must be >= {minimum}, got {value}.")
    return value


def _viewport(name: str) -> Tuple[int, int]:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return DEFAULT_VIEWPORT
    width, sep, height = raw.partition("x")
    if not sep or not width.isdigit() or not height.isdigit():
        raise EnvironmentError(f"{name} must look like 1920x1080, got {raw!r}.")
    return int(width), int(height)


def get_env_config() -> dict:
    """
    Read environment variables (after loading .env) into the session configuration.

    Optional:   WEB_AGENT_HEADLESS (default 1)
                CHROME_EXECUTABLE_PATH
                WEB_AGENT_VIEWPORT (default 1920x1080)
                WEB_AGENT_USER_AGENT
                WEB_AGENT_SCREENSHOT_DIR (default ./screenshots)
                WEB_AGENT_RETENTION_MODE ('count' or 'age', default 'count')
                WEB_AGENT_RETENTION_MAX_FILES, WEB_AGENT_RETENTION_MIN_KEEP,
                WEB_AGENT_RETENTION_MAX_AGE_DAYS
                WEB_AGENT_CONSOLE_BUFFER_SIZE, WEB_AGENT_DIALOG_BUFFER_SIZE
                WEB_AGENT_DIALOG_AUTO_HANDLE, WEB_AGENT_DIALOG_DEFAULT_ACTION
                TESSERACT_CMD
                WEB_AGENT_LOG_LEVEL (default WARNING)

    Raises EnvironmentError naming the offending variable when a value cannot be parsed.
    """
    load_env()

    retention_mode = (os.getenv("WEB_AGENT_RETENTION_MODE") or "count").strip().lower()
    if retention_mode not in ("count", "age"):
        raise EnvironmentError(f"WEB_AGENT_RETENTION_MODE must be 'count' or 'age', got {retention_mode!r}.")

    default_action = (os.getenv("WEB_AGENT_DIALOG_DEFAULT_ACTION") or "accept").strip().lower()
    if default_action not in ("accept", "dismiss"):
        raise EnvironmentError(
            f"WEB_AGENT_DIALOG_DEFAULT_ACTION must be 'accept' or 'dismiss', got {default_action!r}."
        )

    return {
        "headless": _flag("WEB_AGENT_HEADLESS", True),
        "chrome_path": (os.getenv("CHROME_EXECUTABLE_PATH") or "").strip() or None,
        "viewport": _viewport("WEB_AGENT_VIEWPORT"),
        "user_agent": (os.getenv("WEB_AGENT_USER_AGENT") or "").strip() or DEFAULT_USER_AGENT,
        "screenshot_dir": (os.getenv("WEB_AGENT_SCREENSHOT_DIR") or "").strip() or None,
        "retention_mode": retention_mode,
        "retention_max_files": _number("WEB_AGENT_RETENTION_MAX_FILES", RETENTION_MAX_FILES),
        "retention_min_keep": _number("WEB_AGENT_RETENTION_MIN_KEEP", RETENTION_MIN_KEEP),
        "retention_max_age_days": _number(
            "WEB_AGENT_RETENTION_MAX_AGE_DAYS", RETENTION_MAX_AGE_DAYS, cast=float
        ),
        "console_buffer_size": _number("WEB_AGENT_CONSOLE_BUFFER_SIZE", CONSOLE_BUFFER_CAPACITY, minimum=1),
        "dialog_buffer_size": _number("WEB_AGENT_DIALOG_BUFFER_SIZE", DIALOG_BUFFER_CAPACITY, minimum=1),
        "dialog_auto_handle": _flag("WEB_AGENT_DIALOG_AUTO_HANDLE", True),
        "dialog_default_action": default_action,
        "tesseract_cmd": (os.getenv("TESSERACT_CMD") or "").strip() or None,
        "log_level": (os.getenv("WEB_AGENT_LOG_LEVEL") or "WARNING").strip().upper(),
    }
