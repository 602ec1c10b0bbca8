"""
Selenium adapter for the session page.

``SeleniumPage`` exposes the page-driver operations the tools need and
turns the browser's asynchronous output into events on an EventChannel:
console messages come from chromedriver's ``browser`` log, native dialogs
from the alert endpoint. Nothing is dispatched until ``drain`` runs, which
the session layer does before and after every tool call and whenever a
driver call reports an open dialog.
"""

import base64
import contextlib
import time
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Deque, List, Optional, Union

from selenium.common.exceptions import (
    InvalidSelectorException,
    NoAlertPresentException,
    NoSuchElementException,
    NoSuchFrameException,
    StaleElementReferenceException,
    TimeoutException,
    UnexpectedAlertPresentException,
    WebDriverException,
)
from selenium.webdriver.common.action_chains import ActionChains
from selenium.webdriver.common.actions.action_builder import ActionBuilder
from selenium.webdriver.common.actions.mouse_button import MouseButton
from selenium.webdriver.common.by import By
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

from ..actions.keyboard import parse_combo
from ..constants import ACTION_TIMEOUT_SECS, NETWORK_IDLE_QUIET_SECS, SCRIPT_TIMEOUT_SECS
from ..errors import FrameDetachedError, ResolutionError, ToolTimeoutError
from ..events.channel import EventChannel
from ..events.console import DialogHint, parse_dialog_hint, parse_log_entry
from ..frames import FrameContext
from ..utils.retry import retry_op

import logging
logger = logging.getLogger(__name__)


MOUSE_BUTTONS = {
    "left": MouseButton.LEFT,
    "middle": MouseButton.MIDDLE,
    "right": MouseButton.RIGHT,
}

WAIT_STATES = ("attached", "detached", "visible", "hidden")
LOAD_STATES = ("load", "domcontentloaded", "networkidle")

EXTRACT_SCRIPTS = {
    "text": "return (arguments[0].textContent || '').trim();",
    "innerText": "return (arguments[0].innerText || '').trim();",
    "html": "return arguments[0].innerHTML;",
    "outerHTML": "return arguments[0].outerHTML;",
}

EVALUATE_SCRIPT = """
const code = arguments[0];
const done = arguments[arguments.length - 1];
const describe = (value) => {
  if (value === undefined) return 'undefined';
  if (value === null) return 'null';
  if (typeof value === 'function') return value.toString();
  if (typeof value === 'object') {
    try { return JSON.stringify(value, null, 2); } catch (e) { return String(value); }
  }
  return String(value);
};
Promise.resolve()
  .then(() => (0, eval)(code))
  .then(
    (value) => done({success: true, result: describe(value)}),
    (error) => done({success: false, error: (error && error.message) ? error.message : String(error)})
  );
"""

NAVIGATION_STATUS_SCRIPT = (
    "const entry = performance.getEntriesByType('navigation')[0];"
    "return entry && entry.responseStatus ? entry.responseStatus : null;"
)

_MAX_DIALOG_HINTS = 50


def _xpath_literal(text: str) -> str:
    if '"' not in text:
        return f'"{text}"'
    if "'" not in text:
        return f"'{text}'"
    pieces = text.split('"')
    return "concat(" + ", '\"', ".join(f'"{p}"' for p in pieces) + ")"


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(eq=False)
class SeleniumFrame:
    """An iframe of the main document, identified by its element."""

    element: Any
    name: str = ""
    url: str = ""

    @classmethod
    def from_element(cls, element) -> "SeleniumFrame":
        name = element.get_attribute("name") or element.get_attribute("id") or ""
        url = element.get_attribute("src") or "about:blank"
        return cls(element=element, name=name, url=url)

    def is_detached(self) -> bool:
        try:
            self.element.tag_name
        except (StaleElementReferenceException, NoSuchElementException):
            return True
        return False

    def __eq__(self, other):
        return isinstance(other, SeleniumFrame) and self.element == other.element

    def __hash__(self):
        return hash(getattr(self.element, "id", id(self.element)))


class SeleniumDialog:
    """A native dialog currently open on the page."""

    def __init__(self, alert, kind: str, message: str, default_value: Optional[str] = None, timestamp_ms: Optional[int] = None):
        self._alert = alert
        self.kind = kind
        self.message = message
        self.default_value = default_value
        self.timestamp_ms = timestamp_ms or _now_ms()

    def accept(self, prompt_text: Optional[str] = None) -> None:
        if self.kind == "prompt" and prompt_text is not None:
            try:
                self._alert.send_keys(prompt_text)
            except WebDriverException as e:
                logger.debug(f"Could not type into prompt dialog: {e}")
        self._alert.accept()

    def dismiss(self) -> None:
        self._alert.dismiss()


@dataclass
class SeleniumPage:
    driver: Any
    channel: EventChannel = field(default_factory=EventChannel)
    window_handle: Optional[str] = None
    _dialog_hints: Deque[DialogHint] = field(default_factory=lambda: deque(maxlen=_MAX_DIALOG_HINTS))

    def __post_init__(self):
        if self.window_handle is None:
            self.window_handle = self.driver.current_window_handle

    # ------------------------------------------------------------------
    # Event collection
    # ------------------------------------------------------------------

    def _read_browser_log(self) -> List[dict]:
        try:
            return self.driver.get_log("browser") or []
        except WebDriverException as e:
            logger.debug(f"Browser log not readable right now: {e.__class__.__name__}")
            return []

    def is_alive(self) -> bool:
        """False once the browser or the session window is gone."""
        try:
            self.driver.current_window_handle
        except UnexpectedAlertPresentException:
            return True
        except WebDriverException as e:
            logger.debug(f"Session window unreachable: {e.__class__.__name__}")
            return False
        return True

    def _take_hint(self, message: str) -> Optional[DialogHint]:
        """
        Consume the newest marker whose message matches the open dialog.
        beforeunload prompts show browser-provided text, so their marker
        matches any message when no exact match exists.
        """
        hints = list(self._dialog_hints)
        exact = [i for i, hint in enumerate(hints) if hint.message == message]
        unload = [i for i, hint in enumerate(hints) if hint.kind == "beforeunload"]
        chosen = exact or unload
        if not chosen:
            return None
        position = chosen[-1]
        self._dialog_hints = deque(hints[position + 1:], maxlen=_MAX_DIALOG_HINTS)
        return hints[position]

    def _drop_unload_hints(self) -> None:
        # No prompt followed, e.g. Chrome skipped it for lack of user activation.
        self._dialog_hints = deque(
            (hint for hint in self._dialog_hints if hint.kind != "beforeunload"), maxlen=_MAX_DIALOG_HINTS
        )

    def _open_dialog(self) -> Optional[SeleniumDialog]:
        try:
            alert = self.driver.switch_to.alert
            message = alert.text or ""
        except NoAlertPresentException:
            self._drop_unload_hints()
            return None
        except WebDriverException as e:
            logger.debug(f"Dialog state not readable: {e.__class__.__name__}")
            return None
        hint = self._take_hint(message)
        if hint is None:
            return SeleniumDialog(alert, "alert", message)
        return SeleniumDialog(alert, hint.kind, message, hint.default_value)

    def collect(self) -> int:
        """Queue pending console entries and an open dialog, if any."""
        queued = 0
        for entry in self._read_browser_log():
            hint = parse_dialog_hint(entry)
            if hint is not None:
                self._dialog_hints.append(hint)
                continue
            self.channel.emit("console", parse_log_entry(entry))
            queued += 1
        dialog = self._open_dialog()
        if dialog is not None:
            self.channel.emit("dialog", dialog)
            queued += 1
        return queued

    def drain(self) -> int:
        self.collect()
        return self.channel.drain()

    def _guard(self, fn: Callable, *args, retry: bool = True, **kwargs):
        """Run a driver call; if a dialog is blocking the page, resolve it and retry once."""
        try:
            return fn(*args, **kwargs)
        except UnexpectedAlertPresentException:
            logger.debug(f"Dialog interrupted {getattr(fn, '__name__', fn)}; resolving")
            self.drain()
            if not retry:
                raise
            return fn(*args, **kwargs)

    # ------------------------------------------------------------------
    # Frame scoping
    # ------------------------------------------------------------------

    @contextlib.contextmanager
    def scoped(self, context):
        """Run the body inside ``context`` and always return to the main document."""
        entered = isinstance(context, FrameContext)
        if entered:
            try:
                self._guard(self.driver.switch_to.frame, context.frame.element)
            except (StaleElementReferenceException, NoSuchFrameException, NoSuchElementException) as e:
                raise FrameDetachedError(f"Frame {context.frame.name or context.frame.url} is no longer attached") from e
        try:
            yield self
        finally:
            if entered:
                try:
                    self.driver.switch_to.default_content()
                except WebDriverException as e:
                    logger.debug(f"Could not return to main document: {e.__class__.__name__}")

    def frames(self) -> List[SeleniumFrame]:
        def _enumerate():
            elements = self._guard(self.driver.find_elements, By.CSS_SELECTOR, "iframe, frame")
            return [SeleniumFrame.from_element(el) for el in elements]
        return retry_op(_enumerate)

    def query_selector(self, selector: str):
        found = self.query_all(selector)
        return found[0] if found else None

    def content_frame(self, element) -> Optional[SeleniumFrame]:
        if (element.tag_name or "").lower() not in ("iframe", "frame"):
            return None
        return SeleniumFrame.from_element(element)

    # ------------------------------------------------------------------
    # Element lookup
    # ------------------------------------------------------------------

    def query_all(self, selector: str) -> list:
        try:
            return self._guard(self.driver.find_elements, By.CSS_SELECTOR, selector)
        except InvalidSelectorException as e:
            raise ValueError(f"Invalid CSS selector: {selector}") from e

    def extract(self, element, mode: str) -> str:
        script = EXTRACT_SCRIPTS.get(mode, EXTRACT_SCRIPTS["text"])
        value = self._guard(self.driver.execute_script, script, element)
        if value is None:
            return ""
        return str(value).replace("\x00", "").encode("utf-8", errors="ignore").decode("utf-8")

    def locate(self, selector: str, timeout: float = ACTION_TIMEOUT_SECS):
        """
        First element matching ``selector`` as CSS, else an element whose own
        text equals ``selector`` exactly. Waits up to ``timeout`` seconds.
        """
        strategies = [(By.CSS_SELECTOR, selector), (By.XPATH, f"//*[normalize-space(text())={_xpath_literal(selector.strip())}]")]

        def _find(driver):
            for by, value in strategies:
                try:
                    found = driver.find_elements(by, value)
                except InvalidSelectorException:
                    continue
                if found:
                    return found[0]
            return False

        try:
            return self._guard(WebDriverWait(self.driver, timeout).until, _find)
        except TimeoutException as e:
            raise ResolutionError(f"No element matches selector or text: {selector}", locator=selector) from e

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _response_status(self) -> Optional[int]:
        try:
            return self._guard(self.driver.execute_script, NAVIGATION_STATUS_SCRIPT)
        except WebDriverException:
            return None

    def _wait_network_idle(self, timeout: float) -> None:
        deadline = time.monotonic() + timeout
        last_count, stable_since = -1, time.monotonic()
        while time.monotonic() < deadline:
            count = self._guard(self.driver.execute_script, "return performance.getEntriesByType('resource').length;")
            now = time.monotonic()
            if count != last_count:
                last_count, stable_since = count, now
            elif now - stable_since >= NETWORK_IDLE_QUIET_SECS:
                return
            time.sleep(0.1)
        raise ToolTimeoutError(f"Network did not become idle within {int(timeout * 1000)} ms")

    def wait_for_load_state(self, state: str = "load", timeout: float = 60.0) -> None:
        """Wait until ``state`` is reached; both phases of networkidle share one ``timeout`` budget."""
        if state not in LOAD_STATES:
            raise ValueError(f"wait_until must be one of {', '.join(LOAD_STATES)}, got {state!r}")
        ready = ("interactive", "complete") if state == "domcontentloaded" else ("complete",)
        started = time.monotonic()
        try:
            WebDriverWait(self.driver, timeout).until(
                lambda d: self._guard(d.execute_script, "return document.readyState") in ready
            )
        except TimeoutException as e:
            raise ToolTimeoutError(f"Page did not reach {state!r} within {int(timeout * 1000)} ms") from e
        if state == "networkidle":
            self._wait_network_idle(max(0.0, timeout - (time.monotonic() - started)))

    def navigate(self, url: str, wait_until: str = "load", timeout_ms: int = 60000) -> Optional[int]:
        """Load ``url`` and wait for ``wait_until``; returns the HTTP status when the browser reports one."""
        if wait_until not in LOAD_STATES:
            raise ValueError(f"wait_until must be one of {', '.join(LOAD_STATES)}, got {wait_until!r}")
        timeout = timeout_ms / 1000.0
        started = time.monotonic()
        self.driver.set_page_load_timeout(timeout)
        try:
            self._guard(self.driver.get, url, retry=False)
        except TimeoutException as e:
            raise ToolTimeoutError(f"Navigation to {url} exceeded {timeout_ms} ms") from e
        except UnexpectedAlertPresentException:
            logger.debug(f"Dialog opened while loading {url}; it was resolved, continuing")
        self.wait_for_load_state(wait_until, max(0.0, timeout - (time.monotonic() - started)))
        return self._response_status()

    def go_back(self) -> str:
        self._guard(self.driver.back)
        return self.driver.current_url

    def go_forward(self) -> str:
        self._guard(self.driver.forward)
        return self.driver.current_url

    def reload(self) -> str:
        self._guard(self.driver.refresh)
        return self.driver.current_url

    @property
    def url(self) -> str:
        return self._guard(lambda: self.driver.current_url)

    @property
    def title(self) -> str:
        return self._guard(lambda: self.driver.title)

    # ------------------------------------------------------------------
    # Interaction
    # ------------------------------------------------------------------

    def click(self, selector: str, click_count: int = 1, button: str = "left", timeout: float = ACTION_TIMEOUT_SECS) -> None:
        if button not in MOUSE_BUTTONS:
            raise ValueError(f"button must be one of {', '.join(MOUSE_BUTTONS)}, got {button!r}")
        if click_count < 1:
            raise ValueError(f"click_count must be >= 1, got {click_count}")
        element = self.locate(selector, timeout)
        self._guard(self.driver.execute_script, "arguments[0].scrollIntoView({block: 'center', inline: 'center'});", element)
        if button == "left" and click_count == 1:
            self._guard(element.click)
            return
        builder = ActionBuilder(self.driver)
        builder.pointer_action.move_to(element)
        for _ in range(click_count):
            builder.pointer_action.click(button=MOUSE_BUTTONS[button])
        self._guard(builder.perform)

    def fill(self, selector: str, text: str, timeout: float = ACTION_TIMEOUT_SECS) -> None:
        element = self.locate(selector, timeout)
        self._guard(element.clear)
        self._guard(element.send_keys, text)

    def type_text(self, selector: str, text: str, delay_ms: int = 0, timeout: float = ACTION_TIMEOUT_SECS) -> None:
        """Like ``fill`` but, with ``delay_ms``, sends one character at a time."""
        if not delay_ms:
            self.fill(selector, text, timeout)
            return
        element = self.locate(selector, timeout)
        self._guard(element.clear)
        for char in text:
            self._guard(element.send_keys, char)
            time.sleep(delay_ms / 1000.0)

    def press_key(self, key: str, delay_ms: int = 0) -> None:
        """Press ``key`` on the focused element; modifiers go down in order and up in reverse."""
        modifiers, main = parse_combo(key)
        actions = ActionChains(self.driver)
        for modifier in modifiers:
            actions.key_down(modifier)
        actions.key_down(main)
        if delay_ms:
            actions.pause(delay_ms / 1000.0)
        actions.key_up(main)
        for modifier in reversed(modifiers):
            actions.key_up(modifier)
        self._guard(actions.perform)

    def scroll(self, dx: int, dy: int) -> dict:
        return self._guard(
            self.driver.execute_script,
            "window.scrollBy(arguments[0], arguments[1]); return {x: window.scrollX, y: window.scrollY};",
            dx,
            dy,
        )

    def wait_for(self, selector: str, state: str = "visible", timeout_ms: int = 14000):
        if state not in WAIT_STATES:
            raise ValueError(f"state must be one of {', '.join(WAIT_STATES)}, got {state!r}")
        locator = (By.CSS_SELECTOR, selector)
        condition = {
            "attached": EC.presence_of_element_located(locator),
            "visible": EC.visibility_of_element_located(locator),
            "hidden": EC.invisibility_of_element_located(locator),
            "detached": lambda d: not d.find_elements(*locator),
        }[state]
        try:
            return self._guard(WebDriverWait(self.driver, timeout_ms / 1000.0).until, condition)
        except TimeoutException as e:
            raise ToolTimeoutError(
                f"Timed out after {timeout_ms} ms waiting for {selector} to be {state}", locator=selector
            ) from e

    # ------------------------------------------------------------------
    # Content and scripts
    # ------------------------------------------------------------------

    def content(self, fmt: str = "html") -> str:
        if fmt == "html":
            return self._guard(lambda: self.driver.page_source)
        if fmt == "text":
            return self._guard(self.driver.execute_script, "return document.body ? document.body.textContent : '';") or ""
        raise ValueError(f"format must be 'html' or 'text', got {fmt!r}")

    def evaluate(self, code: str) -> dict:
        """
        Evaluate ``code`` in the page and return ``{"success", "result"|"error"}``.
        Script errors are part of the result, not exceptions.
        """
        self.driver.set_script_timeout(SCRIPT_TIMEOUT_SECS)
        try:
            outcome = self._guard(self.driver.execute_async_script, EVALUATE_SCRIPT, code, retry=False)
        except TimeoutException as e:
            raise ToolTimeoutError(f"Script did not finish within {SCRIPT_TIMEOUT_SECS:g} s") from e
        except UnexpectedAlertPresentException:
            return {
                "success": True,
                "result": None,
                "note": "The script opened a native dialog; it was resolved automatically (see get_dialogs) and the script's return value was not captured.",
            }
        return dict(outcome or {"success": False, "error": "Script returned no result"})

    def screenshot(self, path: Union[str, Path], full_page: bool = False, selector: Optional[str] = None) -> Path:
        """Write a PNG of the viewport, the whole page, or one element to ``path``."""
        if selector:
            found = self.query_all(selector)
            if not found:
                raise ResolutionError(f"Element not found: {selector}", locator=selector)
            data = self._guard(lambda: found[0].screenshot_as_png)
        elif full_page:
            metrics = self._guard(self.driver.execute_cdp_cmd, "Page.getLayoutMetrics", {})
            size = metrics.get("cssContentSize") or metrics.get("contentSize") or {}
            shot = self._guard(
                self.driver.execute_cdp_cmd,
                "Page.captureScreenshot",
                {
                    "format": "png",
                    "captureBeyondViewport": True,
                    "clip": {"x": 0, "y": 0, "width": size.get("width", 0), "height": size.get("height", 0), "scale": 1},
                },
            )
            data = base64.b64decode(shot["data"])
        else:
            data = self._guard(self.driver.get_screenshot_as_png)
        path = Path(path)
        path.write_bytes(data)
        return path

    # ------------------------------------------------------------------
    # Cookies
    # ------------------------------------------------------------------

    def cookies(self, urls: Optional[List[str]] = None) -> List[dict]:
        if urls:
            reply = self._guard(self.driver.execute_cdp_cmd, "Network.getCookies", {"urls": list(urls)})
        else:
            reply = self._guard(self.driver.execute_cdp_cmd, "Network.getAllCookies", {})
        return list((reply or {}).get("cookies") or [])

    def add_cookie(self, name: str, value: str, domain: Optional[str] = None, path: str = "/") -> bool:
        params = {"name": name, "value": value, "path": path or "/"}
        if domain:
            params["domain"] = domain
        else:
            params["url"] = self.url
        reply = self._guard(self.driver.execute_cdp_cmd, "Network.setCookie", params)
        return bool((reply or {}).get("success", True))
