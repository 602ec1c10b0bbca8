#region Overview
"""
## One session

The server drives exactly one Chrome window for its whole lifetime. The
window is started lazily by the first tool that needs a page and closed by
`close_browser` or when the server exits. Everything captured from the page
(console output, native dialogs) and the active iframe are kept per session
in the BrowserContext built below and handed to every tool.

## Dialogs

Native dialogs (alert/confirm/prompt) never block the session. They are
resolved as soon as they are seen, by the policy set with
`configure_dialog_handler`, and recorded for `get_dialogs`.

## Iframes

After `switch_to_iframe`, interaction, content and query tools operate inside
that iframe until `switch_to_main_content` or a navigation.

## Screenshots

Screenshots are saved as JPEG under WEB_AGENT_SCREENSHOT_DIR and exposed as
`screenshot://<filename>` resources. Old files are cleaned up in the
background according to the retention settings.
"""
#endregion

#region Imports
import sys
import signal
import logging
from typing import List, Optional
from mcp.server.fastmcp import FastMCP
#endregion

#region Import from your package
from web_agent_mcp.config import get_env_config
from web_agent_mcp.context import BrowserContext, create_context
from web_agent_mcp.browser.session import teardown_session
from web_agent_mcp.decorators import tool_envelope
from web_agent_mcp.tools import (
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
#endregion

#region Logger
logger = logging.getLogger(__name__)
#endregion


def create_server(ctx: BrowserContext) -> FastMCP:
    """Build the FastMCP server with every tool bound to ``ctx``."""
    mcp = FastMCP("web_agent_mcp")

    #region Tools -- Navigation
    @mcp.tool()
    @tool_envelope
    async def navigate(url: str, wait_until: str = "load", timeout: int = 60000) -> str:
        """
        Navigate the browser to a URL. Starts the browser if needed.

        Args:
            url: Absolute URL to load.
            wait_until: "load" (default), "domcontentloaded" or "networkidle".
            timeout: Navigation timeout in milliseconds (default 60000).

        Returns the final URL, title and HTTP status. Any active iframe context
        is reset to the main page.
        """
        return await navigation.navigate(ctx, url, wait_until=wait_until, timeout=timeout)

    @mcp.tool()
    @tool_envelope
    async def go_back() -> str:
        """Go back one entry in the browser history."""
        return await navigation.go_back(ctx)

    @mcp.tool()
    @tool_envelope
    async def go_forward() -> str:
        """Go forward one entry in the browser history."""
        return await navigation.go_forward(ctx)

    @mcp.tool()
    @tool_envelope
    async def refresh() -> str:
        """Reload the current page."""
        return await navigation.refresh(ctx)
    #endregion

    #region Tools -- Page interaction
    @mcp.tool()
    @tool_envelope
    async def click(selector: str, click_count: int = 1, button: str = "left") -> str:
        """
        Click an element in the active context.

        Args:
            selector: CSS selector, or the exact visible text of the element.
            click_count: Number of clicks (2 for a double click).
            button: "left", "right" or "middle".
        """
        return await interaction.click(ctx, selector, click_count=click_count, button=button)

    @mcp.tool(name="type")
    @tool_envelope
    async def type_text(selector: str, text: str, delay: int = 0) -> str:
        """
        Replace the value of an input with `text`.

        Args:
            selector: CSS selector or exact text of the input.
            text: Text to type. Prefix with "base64:" to pass an encoded secret.
            delay: Milliseconds between keystrokes (0 types at once).
        """
        return await interaction.type_text(ctx, selector, text, delay=delay)

    @mcp.tool()
    @tool_envelope
    async def press_key(key: str, delay: int = 0) -> str:
        """
        Press a key or key combination on the focused element, e.g. "Enter",
        "ArrowDown", "Control+C", "Control+Shift+T".

        Args:
            key: Key name or Modifier+Key combination.
            delay: Milliseconds to hold the key before release.
        """
        return await interaction.press_key(ctx, key, delay=delay)

    @mcp.tool()
    @tool_envelope
    async def scroll(direction: str = "down", amount: int = 500) -> str:
        """Scroll the active context "up", "down", "left" or "right" by `amount` pixels."""
        return await interaction.scroll(ctx, direction=direction, amount=amount)

    @mcp.tool()
    @tool_envelope
    async def wait(selector: Optional[str] = None, timeout: int = 14000, state: str = "visible") -> str:
        """
        Wait for an element to be "attached", "detached", "visible" or "hidden".
        Without a selector, simply waits `timeout` milliseconds.
        """
        return await interaction.wait(ctx, selector=selector, timeout=timeout, state=state)
    #endregion

    #region Tools -- Authentication
    @mcp.tool()
    @tool_envelope
    async def login(
        username_selector: str,
        password_selector: str,
        username: str,
        password: str,
        submit_selector: str,
        timeout: int = 14000,
    ) -> str:
        """
        Fill and submit a login form, then wait up to `timeout` ms for the page to settle.
        Credentials may be passed as "base64:<encoded>".
        """
        return await auth.login(
            ctx, username_selector, password_selector, username, password, submit_selector, timeout=timeout
        )

    @mcp.tool()
    @tool_envelope
    async def get_cookies(urls: Optional[List[str]] = None) -> str:
        """Cookies of the session, optionally only those sent to the given URLs."""
        return await auth.get_cookies(ctx, urls=urls)

    @mcp.tool()
    @tool_envelope
    async def set_cookie(name: str, value: str, domain: Optional[str] = None, path: str = "/") -> str:
        """Set a cookie. Without `domain` it is scoped to the current page URL."""
        return await auth.set_cookie(ctx, name, value, domain=domain, path=path)
    #endregion

    #region Tools -- Content
    @mcp.tool()
    @tool_envelope
    async def get_page_content(format: str = "text", cleaning_level: int = 0) -> str:
        """
        Content of the active context (main page or current iframe).

        Args:
            format: "text" (body text) or "html".
            cleaning_level: For html: 0 raw, 1 without scripts/styles, 2 also
                without embedded media, comments and hidden inputs.
        """
        return await extraction.get_page_content(ctx, format=format, cleaning_level=cleaning_level)

    @mcp.tool()
    @tool_envelope
    async def query_page(queries: List[dict]) -> str:
        """
        Run several named CSS queries at once in the active context.

        Each query: {"name", "selector", "extract": "text"|"innerText"|"html"|"outerHTML",
        "index"?, "maxResults"? (default 5, 0 = all, 1 = single string), "allowLargeResults"?}.

        Returns {"results": {name: value}, "metadata": {name: {"returned", "total"}}, "notes": [...]}.
        Check "notes": when a query matched more elements than were returned, it says so.
        Markup results over 1000 characters are truncated unless allowLargeResults is true.
        """
        return await extraction.query_page(ctx, queries)
    #endregion

    #region Tools -- Iframes
    @mcp.tool()
    @tool_envelope
    async def switch_to_iframe(selector: Optional[str] = None, name: Optional[str] = None, index: Optional[int] = None) -> str:
        """
        Make an iframe the active context. Give exactly one of `selector`,
        `name` or `index` (position in list_iframes).
        """
        return await frames.switch_to_iframe(ctx, selector=selector, name=name, index=index)

    @mcp.tool()
    @tool_envelope
    async def switch_to_main_content() -> str:
        """Return to the main page context."""
        return await frames.switch_to_main_content(ctx)

    @mcp.tool()
    @tool_envelope
    async def list_iframes() -> str:
        """List the iframes of the main page with their index, name and URL."""
        return await frames.list_iframes(ctx)

    @mcp.tool()
    @tool_envelope
    async def get_current_frame() -> str:
        """Report the active context: the main page or the current iframe."""
        return await frames.get_current_frame(ctx)
    #endregion

    #region Tools -- Debugging
    @mcp.tool()
    @tool_envelope
    async def get_console_logs(clear: bool = False, filter: Optional[str] = None, limit: Optional[int] = None) -> str:
        """
        Console messages captured from the page, oldest first.

        Args:
            clear: Empty the log after reading.
            filter: Keep messages of this type ("error", "warning", "log", ...) or containing this text.
            limit: Only the most recent N messages.
        """
        return await debugging.get_console_logs(ctx, clear=clear, filter=filter, limit=limit)

    @mcp.tool()
    @tool_envelope
    async def execute_console(code: str) -> str:
        """
        Evaluate JavaScript in the active context and return its result as a
        string. A script error is returned as {"ok": false, "success": false, "error": ...}.
        """
        return await debugging.execute_console(ctx, code)

    @mcp.tool()
    @tool_envelope
    async def get_dialogs(clear: bool = False, filter: Optional[str] = None, limit: int = 50) -> str:
        """
        Native dialogs (alert, confirm, prompt) seen so far and how each was resolved.

        Args:
            clear: Empty the history after reading.
            filter: Dialog type or text contained in the message.
            limit: Most recent N dialogs (0 = all, default 50).
        """
        return await dialogs.get_dialogs(ctx, clear=clear, filter=filter, limit=limit)

    @mcp.tool()
    @tool_envelope
    async def configure_dialog_handler(
        auto_handle: Optional[bool] = None,
        default_action: Optional[str] = None,
        prompt_text: Optional[str] = None,
    ) -> str:
        """
        Set how future dialogs are resolved: `default_action` "accept" or
        "dismiss", and the text entered into prompts. Dialogs are always
        resolved; with auto_handle false they are accepted.
        """
        return await dialogs.configure_dialog_handler(
            ctx, auto_handle=auto_handle, default_action=default_action, prompt_text=prompt_text
        )

    @mcp.tool()
    @tool_envelope
    async def get_session_info() -> str:
        """Session state and environment diagnostics."""
        return await debugging.get_session_info(ctx)
    #endregion

    #region Tools -- Screenshots
    @mcp.tool()
    @tool_envelope
    async def screenshot(
        filename: Optional[str] = None,
        directory: Optional[str] = None,
        full_page: bool = False,
        selector: Optional[str] = None,
        hi_res: bool = False,
        thumbnail: bool = False,
        auto_ocr: bool = False,
        ocr_language: str = "eng",
    ) -> str:
        """
        Save a JPEG screenshot (800px wide unless `hi_res`).

        Args:
            filename: File name; defaults to a timestamped name.
            directory: Target directory; defaults to the configured screenshot directory.
            full_page: Capture the whole scrollable page.
            selector: Capture only this element of the active context.
            hi_res: Keep full resolution.
            thumbnail: Also write a 400px `<name>.thumb.jpg`.
            auto_ocr: Run text recognition on the capture and include the text.
            ocr_language: Tesseract language code used by `auto_ocr`.
        """
        return await screenshots.screenshot(
            ctx,
            filename=filename,
            directory=directory,
            full_page=full_page,
            selector=selector,
            hi_res=hi_res,
            thumbnail=thumbnail,
            auto_ocr=auto_ocr,
            ocr_language=ocr_language,
        )

    @mcp.tool()
    @tool_envelope
    async def list_screenshots(directory: Optional[str] = None) -> str:
        """List saved screenshots, newest first."""
        return await screenshots.list_screenshots(ctx, directory=directory)

    @mcp.tool()
    @tool_envelope
    async def parse_screenshot(filename: str, language: str = "eng") -> str:
        """Extract text from a saved screenshot with OCR (Tesseract language code, default "eng")."""
        return await screenshots.parse_screenshot(ctx, filename, language=language)

    @mcp.resource("screenshot://{filename}", mime_type="image/jpeg")
    def screenshot_resource(filename: str) -> bytes:
        """A saved screenshot."""
        return screenshots.read_screenshot(ctx, filename)
    #endregion

    #region Tools -- Session management
    @mcp.tool()
    @tool_envelope
    async def close_browser(clear_buffers: bool = False) -> str:
        """
        Close the browser. The next page tool starts a new one. Console and
        dialog history survive unless `clear_buffers` is true.
        """
        return await browser_management.close_browser(ctx, clear_buffers=clear_buffers)
    #endregion

    return mcp


def _exit_on_signal(signum, _frame):
    logger.info(f"Received signal {signum}; shutting down")
    sys.exit(0)


def main() -> None:
    config = get_env_config()
    logging.basicConfig(
        level=getattr(logging, config["log_level"], logging.WARNING),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx = create_context(config)
    mcp = create_server(ctx)
    signal.signal(signal.SIGTERM, _exit_on_signal)
    try:
        mcp.run()
    finally:
        teardown_session(ctx)


if __name__ == "__main__":
    main()
