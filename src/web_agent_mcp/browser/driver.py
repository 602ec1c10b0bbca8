"""WebDriver creation for the single session."""

from selenium import webdriver
from selenium.common.exceptions import WebDriverException

from ..constants import CHROME_ARGS, DEFAULT_VIEWPORT, DEFAULT_USER_AGENT, DIALOG_HINT_PREFIX

import logging
logger = logging.getLogger(__name__)


# Runs before any page script. Native dialogs cannot report their kind or
# default value through the alert endpoint, so each call logs a marker first.
# The beforeunload check has to see every page handler's verdict, so its
# listener is moved to the end whenever the page registers another one.
DIALOG_HINT_SCRIPT = """
(() => {
  const prefix = %r;
  const mark = (kind, message, defaultValue) => {
    try {
      console.log(prefix + JSON.stringify({
        kind: kind,
        message: message === undefined ? '' : String(message),
        defaultValue: defaultValue === undefined || defaultValue === null ? null : String(defaultValue),
      }));
    } catch (e) {}
  };
  const wrap = (kind) => {
    const native = window[kind];
    if (typeof native !== 'function' || native.__webAgentWrapped) return;
    const wrapped = function (message, defaultValue) {
      mark(kind, message, defaultValue);
      return native.apply(window, arguments);
    };
    wrapped.__webAgentWrapped = true;
    window[kind] = wrapped;
  };
  ['alert', 'confirm', 'prompt'].forEach(wrap);

  const nativeAdd = EventTarget.prototype.addEventListener;
  const nativeRemove = EventTarget.prototype.removeEventListener;
  const checkUnload = (event) => {
    const returned = typeof event.returnValue === 'string' && event.returnValue !== '';
    if (event.defaultPrevented || returned) mark('beforeunload', '', null);
  };
  const keepLast = () => {
    nativeRemove.call(window, 'beforeunload', checkUnload);
    nativeAdd.call(window, 'beforeunload', checkUnload);
  };
  EventTarget.prototype.addEventListener = function (type, listener, options) {
    const result = nativeAdd.apply(this, arguments);
    if (this === window && type === 'beforeunload' && listener !== checkUnload) keepLast();
    return result;
  };
  const handler = Object.getOwnPropertyDescriptor(window, 'onbeforeunload')
    || Object.getOwnPropertyDescriptor(Window.prototype, 'onbeforeunload');
  if (handler && handler.set && handler.configurable) {
    Object.defineProperty(window, 'onbeforeunload', {
      configurable: true,
      enumerable: handler.enumerable,
      get() { return handler.get.call(window); },
      set(value) { handler.set.call(window, value); keepLast(); },
    });
  }
  keepLast();
})();
""" % DIALOG_HINT_PREFIX


def build_options(config: dict) -> webdriver.ChromeOptions:
    width, height = config.get("viewport") or DEFAULT_VIEWPORT
    options = webdriver.ChromeOptions()
    if config.get("headless", True):
        options.add_argument("--headless=new")
    for arg in CHROME_ARGS:
        options.add_argument(arg)
    options.add_argument(f"--window-size={width},{height}")
    options.add_argument(f"--user-agent={config.get('user_agent') or DEFAULT_USER_AGENT}")
    if config.get("chrome_path"):
        options.binary_location = config["chrome_path"]
    # Console output is read back from chromedriver's browser log.
    options.set_capability("goog:loggingPrefs", {"browser": "ALL"})
    # Dialogs stay open until the dialog interceptor resolves them.
    options.unhandled_prompt_behavior = "ignore"
    return options


def create_webdriver(config: dict) -> webdriver.Chrome:
    """Launch Chrome with the fixed viewport, user agent and dialog hint script."""
    width, height = config.get("viewport") or DEFAULT_VIEWPORT
    driver = webdriver.Chrome(options=build_options(config))
    try:
        driver.execute_cdp_cmd("Page.addScriptToEvaluateOnNewDocument", {"source": DIALOG_HINT_SCRIPT})
        driver.execute_cdp_cmd(
            "Emulation.setDeviceMetricsOverride",
            {"width": width, "height": height, "deviceScaleFactor": 1, "mobile": False},
        )
    except WebDriverException:
        driver.quit()
        raise
    logger.info(f"Chrome started (headless={config.get('headless', True)}, viewport={width}x{height})")
    return driver
