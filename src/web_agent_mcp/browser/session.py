"""
Lifecycle of the single browser session.

``acquire_session`` builds the driver/page pair on first use and wires the
two permanent page listeners (console -> console buffer, dialog -> dialog
interceptor). ``teardown_session`` undoes all of it and is safe to call at
any time. ``pump_events`` dispatches whatever the page has queued.
"""

from selenium.common.exceptions import WebDriverException

from .process import driver_process_tree, reap_processes

import logging
logger = logging.getLogger(__name__)


def acquire_session(ctx):
    """
    Return the session page, creating the browser on first call.

    A session whose browser died (crash, window closed) is torn down and
    replaced; the console and dialog buffers carry over.
    """
    if ctx.page is not None:
        if ctx.page.is_alive():
            return ctx.page
        logger.warning("Browser window lost; starting a new session")
        teardown_session(ctx)

    driver = ctx.driver_factory(ctx.config)
    try:
        page = ctx.page_factory(driver, ctx.config)
    except Exception:
        driver.quit()
        raise

    page.channel.on("console", ctx.console.append)
    page.channel.on("dialog", ctx.dialog_interceptor.handle)

    ctx.driver = driver
    ctx.window_handle = page.window_handle
    ctx.page = page
    ctx.frames.switch_to_main()
    ctx.check_consistent()
    logger.info(f"Browser session started (window {ctx.window_handle})")
    return page


def pump_events(ctx) -> int:
    """Dispatch queued console/dialog events; 0 when there is no session."""
    if ctx.page is None:
        return 0
    return ctx.page.drain()


def teardown_session(ctx, clear_buffers: bool = False) -> bool:
    """
    Close the browser and release every session handle.

    Returns False when there was no session. Buffers survive unless
    ``clear_buffers`` is set.
    """
    had_session = ctx.driver is not None or ctx.page is not None
    driver = ctx.driver
    procs = driver_process_tree(driver) if driver is not None else []
    try:
        if driver is not None:
            try:
                driver.quit()
            except WebDriverException as e:
                logger.warning(f"driver.quit() failed: {e}")
    finally:
        ctx.reset_session_state()
        ctx.ocr.release()
        if clear_buffers:
            ctx.console.clear()
            ctx.dialogs.clear()
    reap_processes(procs)
    if had_session:
        logger.info("Browser session closed")
    return had_session
