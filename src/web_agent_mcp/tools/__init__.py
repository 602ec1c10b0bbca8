# web_agent_mcp/tools/__init__.py
"""
MCP tool implementations - async functions that take the BrowserContext
first and return JSON strings.

Failures are raised (BrowserToolError and friends) and turned into JSON
error payloads by ``tool_envelope`` at the protocol boundary.
"""

from . import (
    auth,
    browser_management,
    debugging,
    dialogs,
    extraction,
    frames,
    interaction,
    navigation,
    screenshots,
)

__all__ = [
    "auth",
    "browser_management",
    "debugging",
    "dialogs",
    "extraction",
    "frames",
    "interaction",
    "navigation",
    "screenshots",
]
