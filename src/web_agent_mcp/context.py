"""
Browser session state.

A ``BrowserContext`` is created once by the composition root
(``__main__``) and passed explicitly to every tool; there is no module-level
session. It holds the driver/page pair and everything scoped to the session:
the frame tracker, the console and dialog buffers, the dialog handler
configuration and the OCR worker.

Thread Safety:
    The BrowserContext itself is NOT thread-safe. Tool calls are serialized
    with ``exclusive_session_access``; the buffers carry their own locks.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from .actions.ocr import OcrWorker
from .browser.driver import create_webdriver
from .browser.page import SeleniumPage
from .constants import CONSOLE_BUFFER_CAPACITY, DIALOG_BUFFER_CAPACITY
from .errors import InvariantViolation
from .events.buffer import BoundedEventBuffer
from .events.dialogs import DialogHandlerConfig, DialogInterceptor
from .frames import FrameTracker


def _default_page_factory(driver, config: dict) -> SeleniumPage:
    return SeleniumPage(driver)


@dataclass
class BrowserContext:
    """
    Attributes:
        config: Environment configuration dictionary (see config.get_env_config)
        driver: Selenium WebDriver instance, None until the session is acquired
        window_handle: Handle of the session window
        page: Page adapter wrapping ``driver``
        frames: Active document context tracker
        console: Buffer of ConsoleRecord
        dialogs: Buffer of DialogRecord
        dialog_config: Auto-resolution policy for native dialogs
        dialog_interceptor: Resolves dialogs into ``dialogs``
        ocr: Lazily started text recognition worker
        driver_factory / page_factory: How the session is built (swapped in tests)
    """

    config: dict = field(default_factory=dict)

    # Session triple (all set or all None)
    driver: Optional[Any] = None
    window_handle: Optional[str] = None
    page: Optional[Any] = None

    frames: FrameTracker = field(default_factory=FrameTracker)
    console: BoundedEventBuffer = field(default_factory=lambda: BoundedEventBuffer(CONSOLE_BUFFER_CAPACITY, "console"))
    dialogs: BoundedEventBuffer = field(default_factory=lambda: BoundedEventBuffer(DIALOG_BUFFER_CAPACITY, "dialog"))
    dialog_config: DialogHandlerConfig = field(default_factory=DialogHandlerConfig)
    dialog_interceptor: Optional[DialogInterceptor] = None
    ocr: OcrWorker = field(default_factory=OcrWorker)

    driver_factory: Callable[[dict], Any] = create_webdriver
    page_factory: Callable[[Any, dict], Any] = _default_page_factory

    intra_process_lock: Optional[asyncio.Lock] = None

    def __post_init__(self):
        if self.dialog_interceptor is None:
            self.dialog_interceptor = DialogInterceptor(self.dialogs, self.dialog_config)

    def is_driver_initialized(self) -> bool:
        return self.driver is not None

    def is_consistent(self) -> bool:
        """The session triple is either fully set or fully cleared."""
        handles = (self.driver, self.window_handle, self.page)
        return all(h is not None for h in handles) or all(h is None for h in handles)

    def check_consistent(self) -> None:
        if not self.is_consistent():
            raise InvariantViolation(
                f"Session handles out of sync: driver={self.driver is not None}, "
                f"window={self.window_handle is not None}, page={self.page is not None}"
            )

    def reset_session_state(self) -> None:
        """Drop the session handles and per-session state; buffers are left alone."""
        self.driver = None
        self.window_handle = None
        self.page = None
        self.frames.switch_to_main()

    def get_intra_process_lock(self) -> asyncio.Lock:
        """Get or create the asyncio lock that serializes tool calls."""
        if self.intra_process_lock is None:
            self.intra_process_lock = asyncio.Lock()
        return self.intra_process_lock


def create_context(config: Optional[dict] = None, **overrides) -> BrowserContext:
    """Build the one session context from configuration (see config.get_env_config)."""
    config = dict(config or {})
    dialog_config = DialogHandlerConfig(
        auto_handle=config.get("dialog_auto_handle", True),
        default_action=config.get("dialog_default_action", "accept"),
    )
    ctx = BrowserContext(
        config=config,
        console=BoundedEventBuffer(config.get("console_buffer_size", CONSOLE_BUFFER_CAPACITY), "console"),
        dialogs=BoundedEventBuffer(config.get("dialog_buffer_size", DIALOG_BUFFER_CAPACITY), "dialog"),
        dialog_config=dialog_config,
        ocr=OcrWorker(config.get("tesseract_cmd")),
        **overrides,
    )
    return ctx
