"""
Parsing of chromedriver ``browser`` log entries into console records.

Chromedriver reports console output as entries shaped like
``{"level": "SEVERE", "message": "https://a.test/app.js 12:8 \"boom\"",
"source": "console-api", "timestamp": 1700000000000}``. The page shim
installed by ``browser.driver`` also writes a marker line right before each
native dialog so the dialog kind and default value survive the trip.
"""

import json
import re
import time
from dataclasses import dataclass
from typing import Optional

from ..constants import DIALOG_HINT_PREFIX
from .records import ConsoleRecord, DIALOG_KINDS


_LEVEL_KINDS = {
    "SEVERE": "error",
    "WARNING": "warning",
    "INFO": "log",
    "DEBUG": "debug",
    "FINE": "debug",
}

_WITH_POSITION = re.compile(r"^(\S+) (\d+):(\d+) (.*)$", re.DOTALL)
_WITHOUT_POSITION = re.compile(r"^(\S+) - (.*)$", re.DOTALL)


@dataclass(frozen=True)
class DialogHint:
    kind: str
    message: str
    default_value: Optional[str] = None


def _unquote(text: str) -> str:
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        try:
            value = json.loads(text)
        except ValueError:
            return text
        if isinstance(value, str):
            return value
    return text


def _split_message(message: str):
    m = _WITH_POSITION.match(message)
    if m:
        url, line, _column, rest = m.groups()
        return _unquote(rest), f"{url}:{line}"
    m = _WITHOUT_POSITION.match(message)
    if m:
        url, rest = m.groups()
        return rest, url
    return message, None


def parse_log_entry(entry: dict) -> ConsoleRecord:
    text, location = _split_message(str(entry.get("message") or ""))
    kind = _LEVEL_KINDS.get(str(entry.get("level") or "").upper(), "log")
    timestamp = entry.get("timestamp")
    if not isinstance(timestamp, (int, float)):
        timestamp = time.time() * 1000
    return ConsoleRecord(kind=kind, text=text, timestamp_ms=int(timestamp), location=location)


def parse_dialog_hint(entry: dict) -> Optional[DialogHint]:
    """Return the hint carried by a shim marker entry, or None for ordinary output."""
    text, _ = _split_message(str(entry.get("message") or ""))
    if not text.startswith(DIALOG_HINT_PREFIX):
        return None
    try:
        data = json.loads(text[len(DIALOG_HINT_PREFIX):])
    except ValueError:
        return None
    kind = data.get("kind") if isinstance(data, dict) else None
    if kind not in DIALOG_KINDS:
        return None
    default = data.get("defaultValue")
    return DialogHint(kind=kind, message=str(data.get("message") or ""), default_value=default)
