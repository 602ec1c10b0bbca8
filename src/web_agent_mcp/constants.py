"""
Global constants and configuration defaults.
No dependencies - safe to import from anywhere.

Values read from the environment here are process-wide defaults; the
per-session configuration returned by ``config.get_env_config()`` may
override most of them.
"""

import os

# ============================================================================
# Browser Configuration
# ============================================================================

DEFAULT_VIEWPORT = (1920, 1080)
"""Fixed viewport (width, height) for the single session page."""

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
"""User agent presented by the session page."""

CHROME_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
)
"""Extra Chrome switches applied to every launch."""

NAVIGATION_TIMEOUT_MS = int(os.getenv("WEB_AGENT_NAVIGATION_TIMEOUT_MS", "60000"))
"""Default navigation timeout in milliseconds."""

WAIT_TIMEOUT_MS = int(os.getenv("WEB_AGENT_WAIT_TIMEOUT_MS", "14000"))
"""Default timeout for explicit waits and post-login settling, in milliseconds."""

ACTION_TIMEOUT_SECS = float(os.getenv("WEB_AGENT_ACTION_TIMEOUT_SECS", "5"))
"""How long click/type/fill wait for their target element to appear."""

SCRIPT_TIMEOUT_SECS = float(os.getenv("WEB_AGENT_SCRIPT_TIMEOUT_SECS", "30"))
"""Upper bound for caller-supplied scripts run through execute_console."""

NETWORK_IDLE_QUIET_SECS = 0.5
"""Resource count must stay unchanged this long to count as network idle."""


# ============================================================================
# Event Capture Configuration
# ============================================================================

DIALOG_BUFFER_CAPACITY = 1000
"""Default number of dialog records kept before the oldest is evicted."""

CONSOLE_BUFFER_CAPACITY = 1000
"""Default number of console records kept before the oldest is evicted."""

DEFAULT_DIALOG_LIMIT = 50
"""Default number of most-recent dialogs returned by get_dialogs."""

DIALOG_HINT_PREFIX = "__web_agent_dialog__:"
"""Console marker written by the page shim right before a native dialog opens."""


# ============================================================================
# Extraction Configuration
# ============================================================================

MAX_QUERY_RESULT_CHARS = 1000
"""Markup longer than this is truncated unless allowLargeResults is set."""

DEFAULT_MAX_RESULTS = 5
"""Matches returned per query when maxResults is not given."""


# ============================================================================
# Screenshot Configuration
# ============================================================================

LOW_RES_WIDTH = 800
"""Width of the default (low resolution) screenshot encoding."""

JPEG_QUALITY = 75
"""JPEG quality for low resolution captures and thumbnails."""

HIRES_JPEG_QUALITY = 85
"""JPEG quality for hi_res captures."""

THUMBNAIL_WIDTH = 400
"""Width of the optional thumbnail written next to a capture."""

RETENTION_MAX_FILES = 20
"""Count-cap retention: number of most recent screenshots kept."""

RETENTION_MIN_KEEP = 10
"""Age retention: newest screenshots always kept regardless of age."""

RETENTION_MAX_AGE_DAYS = 7
"""Age retention: screenshots older than this are deleted (outside the floor)."""


__all__ = [
    "DEFAULT_VIEWPORT",
    "DEFAULT_USER_AGENT",
    "CHROME_ARGS",
    "NAVIGATION_TIMEOUT_MS",
    "WAIT_TIMEOUT_MS",
    "ACTION_TIMEOUT_SECS",
    "SCRIPT_TIMEOUT_SECS",
    "NETWORK_IDLE_QUIET_SECS",
    "DIALOG_BUFFER_CAPACITY",
    "CONSOLE_BUFFER_CAPACITY",
    "DEFAULT_DIALOG_LIMIT",
    "DIALOG_HINT_PREFIX",
    "MAX_QUERY_RESULT_CHARS",
    "DEFAULT_MAX_RESULTS",
    "LOW_RES_WIDTH",
    "JPEG_QUALITY",
    "HIRES_JPEG_QUALITY",
    "THUMBNAIL_WIDTH",
    "RETENTION_MAX_FILES",
    "RETENTION_MIN_KEEP",
    "RETENTION_MAX_AGE_DAYS",
]
