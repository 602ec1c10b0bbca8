"""Error taxonomy shared by the session core and the tool layer."""

from typing import Optional


__all__ = [
    "BrowserToolError",
    "ResolutionError",
    "FrameDetachedError",
    "ToolTimeoutError",
    "InvariantViolation",
]


class BrowserToolError(Exception):
    """Base class for failures reported back to the tool caller."""

    code = "error"

    def __init__(self, message: str, *, locator: Optional[str] = None):
        super().__init__(message)
        self.locator = locator

    def to_payload(self) -> dict:
        payload = {"ok": False, "error": self.code, "message": str(self)}
        if self.locator is not None:
            payload["locator"] = self.locator
        return payload


class ResolutionError(BrowserToolError):
    """A selector, frame, name or index did not resolve to anything."""

    code = "not_found"


class FrameDetachedError(ResolutionError):
    """The stored frame reference no longer points at a live document."""

    code = "frame_detached"


class ToolTimeoutError(BrowserToolError):
    """An explicit wait or navigation ran past its budget."""

    code = "timeout"


class InvariantViolation(AssertionError):
    """Programming error inside the session core (never a user error)."""
