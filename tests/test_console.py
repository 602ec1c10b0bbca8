# tests/test_console.py
import json
import time

import pytest
from selenium.common.exceptions import (
    InvalidSessionIdException,
    NoAlertPresentException,
    NoSuchWindowException,
    UnexpectedAlertPresentException,
)

from web_agent_mcp.browser.driver import DIALOG_HINT_SCRIPT
from web_agent_mcp.browser.page import SeleniumPage
from web_agent_mcp.constants import DIALOG_HINT_PREFIX
from web_agent_mcp.events.buffer import BoundedEventBuffer
from web_agent_mcp.events.console import parse_dialog_hint, parse_log_entry
from web_agent_mcp.events.dialogs import DialogHandlerConfig, DialogInterceptor


def _entry(message, level="INFO", timestamp=1_700_000_000_000):
    return {"level": level, "message": message, "source": "console-api", "timestamp": timestamp}


def _hint_entry(kind, message, default=None):
    body = json.dumps({"kind": kind, "message": message, "defaultValue": default})
    return _entry("https://app.test/ 3:9 " + json.dumps(DIALOG_HINT_PREFIX + body))


class TestParseLogEntry:
    def test_console_api_message_with_position(self):
        record = parse_log_entry(_entry('https://app.test/main.js 12:8 "boom"', level="SEVERE"))
        assert record.kind == "error"
        assert record.text == "boom"
        assert record.location == "https://app.test/main.js:12"
        assert record.timestamp_ms == 1_700_000_000_000

    def test_network_message_without_position(self):
        record = parse_log_entry(_entry("https://app.test/x.png - Failed to load resource", level="SEVERE"))
        assert record.text == "Failed to load resource"
        assert record.location == "https://app.test/x.png"

    @pytest.mark.parametrize("level,kind", [("WARNING", "warning"), ("INFO", "log"), ("DEBUG", "debug"), ("OTHER", "log")])
    def test_level_mapping(self, level, kind):
        assert parse_log_entry(_entry("plain text", level=level)).kind == kind

    def test_unparseable_message_kept_verbatim(self):
        record = parse_log_entry(_entry("plain text"))
        assert record.text == "plain text"
        assert record.location is None

    def test_format_line(self):
        record = parse_log_entry(_entry('https://app.test/a.js 1:1 "hi"', level="WARNING"))
        assert record.format(0) == "[0] [2023-11-14T22:13:20.000Z] [warning] (https://app.test/a.js:1): hi"


class TestParseDialogHint:
    def test_marker_is_recognised(self):
        hint = parse_dialog_hint(_hint_entry("prompt", "Name?", "Bob"))
        assert hint.kind == "prompt"
        assert hint.message == "Name?"
        assert hint.default_value == "Bob"

    def test_ordinary_output_is_not_a_hint(self):
        assert parse_dialog_hint(_entry('https://app.test/ 1:1 "hello"')) is None

    def test_unknown_kind_ignored(self):
        assert parse_dialog_hint(_hint_entry("toast", "x")) is None


class StubAlert:
    def __init__(self, owner, text):
        self.owner = owner
        self.text = text
        self.calls = []

    def send_keys(self, value):
        self.calls.append(("send_keys", value))

    def accept(self):
        self.calls.append(("accept",))
        self.owner.alert_obj = None

    def dismiss(self):
        self.calls.append(("dismiss",))
        self.owner.alert_obj = None


class StubSwitchTo:
    def __init__(self):
        self.alert_obj = None

    @property
    def alert(self):
        if self.alert_obj is None:
            raise NoAlertPresentException()
        return self.alert_obj

    def open(self, text):
        self.alert_obj = StubAlert(self, text)
        return self.alert_obj


class StubDriver:
    current_window_handle = "W-1"

    def __init__(self):
        self.logs = []
        self.switch_to = StubSwitchTo()

    def get_log(self, kind):
        assert kind == "browser"
        out, self.logs = self.logs, []
        return out


class TestSeleniumPageEvents:
    def setup_method(self):
        self.driver = StubDriver()
        self.page = SeleniumPage(self.driver)
        self.console = BoundedEventBuffer(name="console")
        self.dialogs = BoundedEventBuffer(name="dialog")
        self.config = DialogHandlerConfig(prompt_text="Alice")
        self.page.channel.on("console", self.console.append)
        self.page.channel.on("dialog", DialogInterceptor(self.dialogs, self.config).handle)

    def test_window_handle_taken_from_driver(self):
        assert self.page.window_handle == "W-1"

    def test_console_entries_reach_the_buffer_in_order(self):
        self.driver.logs = [_entry(f'https://app.test/ 1:1 "line {i}"') for i in range(3)]
        assert self.console.read_all() == []
        self.page.drain()
        assert [r.text for r in self.console.read_all()] == ["line 0", "line 1", "line 2"]

    def test_hint_markers_are_not_console_output(self):
        self.driver.logs = [_hint_entry("confirm", "Sure?")]
        self.page.drain()
        assert self.console.read_all() == []

    def test_prompt_dialog_kind_comes_from_hint(self):
        self.driver.logs = [_hint_entry("prompt", "Name?", "Bob")]
        alert = self.driver.switch_to.open("Name?")
        self.page.drain()
        record = self.dialogs.read_all()[0]
        assert record.kind == "prompt"
        assert record.default_value == "Bob"
        assert record.prompt_text == "Alice"
        assert alert.calls == [("send_keys", "Alice"), ("accept",)]

    def test_dialog_without_hint_is_an_alert(self):
        alert = self.driver.switch_to.open("Plain")
        self.page.drain()
        record = self.dialogs.read_all()[0]
        assert record.kind == "alert"
        assert alert.calls == [("accept",)]

    def test_guard_resolves_dialog_and_retries(self):
        self.driver.logs = [_hint_entry("confirm", "Leave?")]
        self.driver.switch_to.open("Leave?")
        calls = []

        def action():
            calls.append(True)
            if self.driver.switch_to.alert_obj is not None:
                raise UnexpectedAlertPresentException()
            return "done"

        assert self.page._guard(action) == "done"
        assert len(calls) == 2
        assert [r.kind for r in self.dialogs.read_all()] == ["confirm"]

    def test_beforeunload_kind_comes_from_unload_marker(self):
        self.driver.logs = [_hint_entry("beforeunload", "")]
        alert = self.driver.switch_to.open("Leave site? Changes you made may not be saved.")
        self.page.drain()
        record = self.dialogs.read_all()[0]
        assert record.kind == "beforeunload"
        assert record.response == "accept"
        assert alert.calls == [("accept",)]

    def test_exact_message_match_wins_over_unload_marker(self):
        self.driver.logs = [_hint_entry("beforeunload", ""), _hint_entry("confirm", "Sure?")]
        self.driver.switch_to.open("Sure?")
        self.page.drain()
        assert [r.kind for r in self.dialogs.read_all()] == ["confirm"]

    def test_unload_marker_without_prompt_is_dropped(self):
        self.driver.logs = [_hint_entry("beforeunload", "")]
        self.page.drain()
        self.driver.switch_to.open("Plain")
        self.page.drain()
        assert [r.kind for r in self.dialogs.read_all()] == ["alert"]

    def test_init_script_reports_beforeunload(self):
        assert "beforeunload" in DIALOG_HINT_SCRIPT
        assert DIALOG_HINT_PREFIX in DIALOG_HINT_SCRIPT


class DeadSwitchTo:
    @property
    def alert(self):
        raise InvalidSessionIdException("invalid session id")


class DeadDriver:
    switch_to = DeadSwitchTo()

    @property
    def current_window_handle(self):
        raise NoSuchWindowException("no such window: target window already closed")

    def get_log(self, kind):
        raise InvalidSessionIdException("invalid session id")


class TestSeleniumPageLostBrowser:
    def setup_method(self):
        self.page = SeleniumPage(DeadDriver(), window_handle="W-1")

    def test_not_alive(self):
        assert self.page.is_alive() is False

    def test_stub_driver_is_alive(self):
        assert SeleniumPage(StubDriver()).is_alive() is True

    def test_drain_does_not_raise(self):
        assert self.page.drain() == 0


class TestLoadStateBudget:
    def test_network_idle_gets_remaining_time(self, monkeypatch):
        class SlowDriver(StubDriver):
            def execute_script(self, script):
                time.sleep(0.3)
                return "complete"

        page = SeleniumPage(SlowDriver())
        budgets = []
        monkeypatch.setattr(page, "_wait_network_idle", budgets.append)
        page.wait_for_load_state("networkidle", timeout=1.0)
        assert len(budgets) == 1
        assert 0.0 <= budgets[0] <= 0.75

    def test_other_states_skip_network_idle(self, monkeypatch):
        class ReadyDriver(StubDriver):
            def execute_script(self, script):
                return "complete"

        page = SeleniumPage(ReadyDriver())
        budgets = []
        monkeypatch.setattr(page, "_wait_network_idle", budgets.append)
        page.wait_for_load_state("load", timeout=1.0)
        assert budgets == []
