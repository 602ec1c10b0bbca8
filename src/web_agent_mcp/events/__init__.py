"""Page event capture: the channel, the bounded buffers and the dialog state machine."""

from .buffer import BoundedEventBuffer
from .channel import EventChannel
from .records import ConsoleRecord, DialogRecord
from .dialogs import DialogHandlerConfig, DialogInterceptor, DialogState, resolve_policy

__all__ = [
    "BoundedEventBuffer",
    "EventChannel",
    "ConsoleRecord",
    "DialogRecord",
    "DialogHandlerConfig",
    "DialogInterceptor",
    "DialogState",
    "resolve_policy",
]
