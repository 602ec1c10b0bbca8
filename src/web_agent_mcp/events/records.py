"""Immutable records captured from page events."""

import datetime
from dataclasses import dataclass, asdict
from typing import Optional

from ..errors import InvariantViolation


DIALOG_KINDS = ("alert", "confirm", "prompt", "beforeunload")
DIALOG_RESPONSES = ("accept", "dismiss")


def iso_timestamp(timestamp_ms: int) -> str:
    moment = datetime.datetime.fromtimestamp(timestamp_ms / 1000.0, tz=datetime.timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class ConsoleRecord:
    kind: str
    text: str
    timestamp_ms: int
    location: Optional[str] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["timestamp"] = iso_timestamp(self.timestamp_ms)
        return data

    def format(self, index: int) -> str:
        where = f" ({self.location})" if self.location else ""
        return f"[{index}] [{iso_timestamp(self.timestamp_ms)}] [{self.kind}]{where}: {self.text}"


@dataclass(frozen=True)
class DialogRecord:
    """
    A native dialog after it was resolved.

    Records only exist in the resolved state: constructing one with
    ``handled=False`` or without a response raises InvariantViolation.
    """

    kind: str
    message: str
    default_value: Optional[str]
    timestamp_ms: int
    handled: bool
    response: Optional[str]
    prompt_text: Optional[str] = None
    error: Optional[str] = None

    def __post_init__(self):
        if not self.handled or self.response is None:
            raise InvariantViolation(f"Dialog record for {self.kind!r} built before it was resolved")
        if self.response not in DIALOG_RESPONSES:
            raise InvariantViolation(f"Unknown dialog response {self.response!r}")
        if self.kind not in DIALOG_KINDS:
            raise InvariantViolation(f"Unknown dialog kind {self.kind!r}")

    @property
    def text(self) -> str:
        return self.message

    def to_dict(self) -> dict:
        data = asdict(self)
        data["timestamp"] = iso_timestamp(self.timestamp_ms)
        return data

    def format(self) -> str:
        lines = [f"[{iso_timestamp(self.timestamp_ms)}] {self.kind.upper()}: {self.message}"]
        if self.default_value:
            lines.append(f"  Default: {self.default_value}")
        handled = f"  Handled: {self.response}"
        if self.prompt_text:
            handled += f' (with text: "{self.prompt_text}")'
        if self.error:
            handled += f" (failed: {self.error})"
        lines.append(handled)
        return "\n".join(lines)
