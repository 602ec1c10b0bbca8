"""Configuration management for the browser session."""

from .environment import (
    get_env_config,
    load_env,
)

from .paths import (
    get_screenshot_dir,
    ensure_dir,
    artifact_path,
)

__all__ = [
    "get_env_config",
    "load_env",
    "get_screenshot_dir",
    "ensure_dir",
    "artifact_path",
]
