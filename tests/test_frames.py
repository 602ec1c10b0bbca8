# tests/test_frames.py
import pytest

from _fakes import FakeElement, FakeFrame, FakePage

from web_agent_mcp.errors import FrameDetachedError, ResolutionError
from web_agent_mcp.frames import MAIN, FrameContext, FrameInfo, FrameTracker


class TestFrameTracker:
    def setup_method(self):
        self.page = FakePage()
        self.checkout = self.page.add_frame(FakeFrame(name="checkout", url="https://pay.test/"), selector="#pay")
        self.ads = self.page.add_frame(FakeFrame(name="", url=""), selector="#ads")
        self.page.add_elements("#not-a-frame", FakeElement("x"))
        self.tracker = FrameTracker()

    def test_starts_on_main(self):
        assert self.tracker.current_frame() is MAIN
        assert self.tracker.resolve() is MAIN

    def test_requires_exactly_one_locator(self):
        with pytest.raises(ValueError, match="exactly one"):
            self.tracker.switch_to_frame(self.page)
        with pytest.raises(ValueError, match="exactly one"):
            self.tracker.switch_to_frame(self.page, selector="#pay", index=0)

    def test_switch_by_index(self):
        info = self.tracker.switch_to_frame(self.page, index=1)
        assert info == FrameInfo(index=1, name="(unnamed)", url="about:blank")
        assert self.tracker.resolve() == FrameContext(self.ads)

    def test_index_zero_is_first_iframe(self):
        info = self.tracker.switch_to_frame(self.page, index=0)
        assert info.name == "checkout"

    def test_index_out_of_range_names_the_range(self):
        with pytest.raises(ResolutionError, match=r"Frame index 2 out of range \(0-1\)"):
            self.tracker.switch_to_frame(self.page, index=2)
        assert self.tracker.current_frame() is MAIN

    def test_index_on_page_without_iframes(self):
        with pytest.raises(ResolutionError, match="no iframes"):
            self.tracker.switch_to_frame(FakePage(), index=0)

    def test_switch_by_selector(self):
        info = self.tracker.switch_to_frame(self.page, selector="#pay")
        assert info.to_dict() == {"main": False, "index": 0, "name": "checkout", "url": "https://pay.test/"}

    def test_selector_errors(self):
        with pytest.raises(ResolutionError, match="No iframe found with selector: #missing"):
            self.tracker.switch_to_frame(self.page, selector="#missing")
        with pytest.raises(ResolutionError, match="is not an iframe"):
            self.tracker.switch_to_frame(self.page, selector="#not-a-frame")

    def test_switch_by_name(self):
        self.tracker.switch_to_frame(self.page, name="checkout")
        assert self.tracker.resolve().frame is self.checkout
        with pytest.raises(ResolutionError, match="No iframe found with name: nope"):
            self.tracker.switch_to_frame(self.page, name="nope")

    def test_failed_switch_keeps_previous_frame(self):
        self.tracker.switch_to_frame(self.page, name="checkout")
        with pytest.raises(ResolutionError):
            self.tracker.switch_to_frame(self.page, index=9)
        assert self.tracker.current_frame().name == "checkout"

    def test_switch_to_main(self):
        self.tracker.switch_to_frame(self.page, index=0)
        self.tracker.switch_to_main()
        assert self.tracker.resolve() is MAIN
        assert self.tracker.current_frame().to_dict() == {"main": True}

    def test_detached_frame_falls_back_to_main(self):
        self.tracker.switch_to_frame(self.page, name="checkout")
        self.checkout.detached = True
        with pytest.raises(FrameDetachedError) as exc:
            self.tracker.resolve()
        assert exc.value.code == "frame_detached"
        assert self.tracker.resolve() is MAIN

    def test_list_frames(self):
        listing = [info.to_dict() for info in self.tracker.list_frames(self.page)]
        assert listing == [
            {"main": False, "index": 0, "name": "checkout", "url": "https://pay.test/"},
            {"main": False, "index": 1, "name": "(unnamed)", "url": "about:blank"},
        ]
