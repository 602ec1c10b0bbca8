"""Diagnostics and debugging information utility functions."""

import sys
import platform
from typing import Optional

import selenium
from selenium.common.exceptions import WebDriverException


def collect_diagnostics(ctx, exc: Optional[Exception] = None) -> str:
    """
    Collect diagnostic information about the browser, driver, session state and environment.

    Args:
        ctx: The BrowserContext of the running server
        exc: Exception that occurred (can be None)

    Returns:
        str: Formatted diagnostic information
    """
    config = ctx.config or {}
    driver = ctx.driver
    width, height = config.get("viewport") or ("?", "?")
    current = ctx.frames.current_frame()

    parts = [
        f"OS                : {platform.system()} {platform.release()}",
        f"Python            : {sys.version.split()[0]}",
        f"Selenium          : {getattr(selenium, '__version__', '?')}",
        f"Chrome binary     : {config.get('chrome_path') or '<selenium manager>'}",
        f"Headless          : {config.get('headless', True)}",
        f"Viewport          : {width}x{height}",
        f"Driver initialized: {driver is not None}",
        f"Window handle     : {ctx.window_handle or '<none>'}",
        f"Active frame      : {getattr(current, 'name', 'main')}",
        f"Console records   : {len(ctx.console)}/{ctx.console.capacity}",
        f"Dialog records    : {len(ctx.dialogs)}/{ctx.dialogs.capacity}",
        f"Dialog handler    : {ctx.dialog_config.to_dict()}",
        f"OCR worker active : {ctx.ocr.active}",
    ]

    if driver is not None:
        try:
            ver = driver.execute_cdp_cmd("Browser.getVersion", {}) or {}
            parts.append(f"Browser version   : {ver.get('product', '<unknown>')}")
        except WebDriverException:
            parts.append("Browser version   : <unknown>")

        cap = getattr(driver, "capabilities", None) or {}
        chrome_caps = cap.get("chrome") or {}
        drv_ver = chrome_caps.get("chromedriverVersion") or cap.get("browserVersion") or "<unknown>"
        parts.append(f"Driver version    : {drv_ver}")

    if exc:
        parts += [
            "---- ERROR ----",
            f"Error type        : {type(exc).__name__}",
            f"Error message     : {exc}",
        ]

    return "\n".join(parts)
