"""
Always-on native dialog handling.

A dialog moves IDLE -> PRESENTED -> RESOLVING -> IDLE inside a single
``DialogInterceptor.handle`` call. The handler configuration is copied when
the dialog is presented, so a reconfiguration that lands while a dialog is
being resolved only applies to the next one. Every presented dialog is
resolved: ``auto_handle=False`` still accepts, because an open native
dialog blocks all further page interaction.
"""

import enum
import time
from dataclasses import dataclass, replace, asdict
from typing import Optional, Tuple

from .buffer import BoundedEventBuffer
from .records import DialogRecord

import logging
logger = logging.getLogger(__name__)


ACCEPT = "accept"
DISMISS = "dismiss"


class DialogState(enum.Enum):
    IDLE = "idle"
    PRESENTED = "presented"
    RESOLVING = "resolving"


@dataclass
class DialogHandlerConfig:
    auto_handle: bool = True
    default_action: str = ACCEPT
    prompt_text: str = ""

    def configure(
        self,
        auto_handle: Optional[bool] = None,
        default_action: Optional[str] = None,
        prompt_text: Optional[str] = None,
    ) -> "DialogHandlerConfig":
        if default_action is not None and default_action not in (ACCEPT, DISMISS):
            raise ValueError(f"default_action must be 'accept' or 'dismiss', got {default_action!r}")
        if auto_handle is not None:
            self.auto_handle = bool(auto_handle)
        if default_action is not None:
            self.default_action = default_action
        if prompt_text is not None:
            self.prompt_text = prompt_text
        return self

    def snapshot(self) -> "DialogHandlerConfig":
        return replace(self)

    def to_dict(self) -> dict:
        return asdict(self)


def resolve_policy(config: DialogHandlerConfig, kind: str) -> Tuple[str, Optional[str]]:
    """Return ``(action, prompt_text)`` for a dialog of ``kind`` under ``config``."""
    if not config.auto_handle:
        return ACCEPT, None
    if config.default_action == DISMISS:
        return DISMISS, None
    if kind == "prompt":
        return ACCEPT, config.prompt_text if config.prompt_text is not None else ""
    # accept, or an unrecognised action
    return ACCEPT, None


class DialogInterceptor:
    """Resolves dialogs as they are drained from the page channel and records them."""

    def __init__(self, buffer: BoundedEventBuffer, config: DialogHandlerConfig):
        self.buffer = buffer
        self.config = config
        self.state = DialogState.IDLE
        self.handled_count = 0

    def handle(self, dialog) -> DialogRecord:
        """
        Resolve ``dialog`` (an object with kind/message/default_value/
        timestamp_ms plus accept(prompt_text)/dismiss()) and append its record.

        Driver failures while accepting or dismissing are logged and kept on
        the record as ``error``; they never reach the tool that happened to
        be running.
        """
        self.state = DialogState.PRESENTED
        policy = self.config.snapshot()
        try:
            self.state = DialogState.RESOLVING
            action, prompt_text = resolve_policy(policy, dialog.kind)
            error = None
            try:
                if action == ACCEPT:
                    dialog.accept(prompt_text)
                else:
                    dialog.dismiss()
            except Exception as e:
                logger.warning(f"Failed to {action} {dialog.kind} dialog {dialog.message!r}: {e}")
                error = str(e) or e.__class__.__name__

            record = DialogRecord(
                kind=dialog.kind,
                message=dialog.message,
                default_value=dialog.default_value,
                timestamp_ms=getattr(dialog, "timestamp_ms", None) or int(time.time() * 1000),
                handled=True,
                response=action,
                prompt_text=prompt_text,
                error=error,
            )
            self.buffer.append(record)
            self.handled_count += 1
            logger.info(f"Auto-{action}ed {dialog.kind} dialog: {dialog.message!r}")
            return record
        finally:
            self.state = DialogState.IDLE
