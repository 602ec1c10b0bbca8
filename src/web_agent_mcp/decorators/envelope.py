# web_agent_mcp/decorators/envelope.py

import os
import json
import asyncio
import inspect
import datetime
import functools
import traceback
from typing import Any, Callable

from selenium.common.exceptions import NoSuchElementException, TimeoutException

from ..errors import BrowserToolError, InvariantViolation

import logging
logger = logging.getLogger(__name__)


__all__ = [
    "tool_envelope",
    "error_code",
]


def error_code(err: Exception) -> str:
    """Map an exception onto the error codes clients branch on."""
    if isinstance(err, BrowserToolError):
        return err.code
    if isinstance(err, TimeoutException):
        return "timeout"
    if isinstance(err, NoSuchElementException):
        return "not_found"
    if isinstance(err, (ValueError, TypeError)):
        return "invalid_argument"
    return "error"


def tool_envelope(func: Callable):
    """
    Outermost decorator for MCP tool functions:
      - Works with both async and sync callables.
      - On success: ensures the return value is a string (json.dumps for non-strings).
      - On error: returns a uniform JSON string naming the tool, an error code
        (not_found, frame_detached, timeout, invalid_argument, error), the
        message, and for unexpected failures an optional traceback.
    Environment:
      - Set WEB_AGENT_TOOL_ERRORS_TRACEBACK=0 to suppress traceback in error payloads.
    """
    include_tb = os.getenv("WEB_AGENT_TOOL_ERRORS_TRACEBACK", "1") not in ("0", "false", "False")
    tool_name = func.__name__

    def _normalize(value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, str):
            return value
        if isinstance(value, bytes):
            return value.decode("utf-8", "replace")
        return json.dumps(value, ensure_ascii=False, default=lambda o: getattr(o, "__dict__", repr(o)))

    def _error_payload(err: Exception) -> str:
        code = error_code(err)
        payload = {
            "ok": False,
            "tool": tool_name,
            "error": code,
            "message": str(err),
            "summary": f"{tool_name}: {err.__class__.__name__}: {err}",
            "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        }
        locator = getattr(err, "locator", None)
        if locator is not None:
            payload["locator"] = locator
        if code == "error":
            logger.exception(f"Tool {tool_name} failed")
            if include_tb:
                payload["traceback"] = traceback.format_exc()
        else:
            logger.info(f"Tool {tool_name} reported {code}: {err}")
        return json.dumps(payload, ensure_ascii=False)

    if inspect.iscoroutinefunction(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                result = await func(*args, **kwargs)
            except asyncio.CancelledError:
                # Preserve cooperative cancellation semantics
                raise
            except InvariantViolation:
                raise
            except Exception as e:
                return _error_payload(e)
            return _normalize(result)
        return wrapper
    else:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                result = func(*args, **kwargs)
            except InvariantViolation:
                raise
            except Exception as e:
                return _error_payload(e)
            return _normalize(result)
        return wrapper
