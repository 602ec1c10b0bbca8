# tests/test_screenshots.py
import datetime
import json

import pytest
from PIL import Image

from _fakes import FakeElement, FakeFrame, FakePage

from web_agent_mcp.actions.retention import wait_for_cleanups
from web_agent_mcp.actions.screenshots import capture, default_filename, encode_jpeg, list_screenshots
from web_agent_mcp.errors import ResolutionError
from web_agent_mcp.frames import FrameContext
from web_agent_mcp.tools import screenshots as screenshot_tools


def test_default_filename_format():
    moment = datetime.datetime(2024, 5, 1, 10, 20, 30, 123456, tzinfo=datetime.timezone.utc)
    assert default_filename(moment) == "screenshot-2024-05-01T10-20-30-123Z.jpg"


def test_encode_jpeg_downscales_keeping_aspect(tmp_path):
    source = tmp_path / "in.png"
    Image.new("RGBA", (1600, 1200), (0, 0, 255, 128)).save(source)
    size = encode_jpeg(source, tmp_path / "out.jpg", width=800)
    assert size == (800, 600)
    with Image.open(tmp_path / "out.jpg") as img:
        assert img.format == "JPEG"
        assert img.size == (800, 600)


def test_encode_jpeg_never_enlarges(tmp_path):
    source = tmp_path / "small.png"
    Image.new("RGB", (300, 200)).save(source)
    assert encode_jpeg(source, tmp_path / "out.jpg", width=800) == (300, 200)


class TestCapture:
    def setup_method(self):
        self.page = FakePage()
        self.page.add_elements("#card", FakeElement("card"))

    def test_low_res_capture_removes_temp_file(self, tmp_path):
        result = capture(self.page, tmp_path, filename="home.jpg")
        assert result.path == tmp_path / "home.jpg"
        assert (result.width, result.height) == (800, 600)
        assert sorted(p.name for p in tmp_path.iterdir()) == ["home.jpg"]
        assert self.page.calls[-1][1].endswith("temp-home.png")

    def test_hi_res_keeps_native_size(self, tmp_path):
        result = capture(self.page, tmp_path, filename="full.jpg", full_page=True, hi_res=True)
        assert (result.width, result.height) == (1600, 1200)
        assert "temp-hires-full.png" in self.page.calls[-1][1]

    def test_thumbnail(self, tmp_path):
        result = capture(self.page, tmp_path, filename="home.jpg", thumbnail=True)
        assert result.thumbnail == tmp_path / "home.thumb.jpg"
        with Image.open(result.thumbnail) as img:
            assert img.width == 400

    def test_png_name_is_stored_as_jpeg(self, tmp_path):
        assert capture(self.page, tmp_path, filename="shot.png").path.name == "shot.jpg"
        assert capture(self.page, tmp_path, filename="plain").path.name == "plain.jpg"

    def test_path_components_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            capture(self.page, tmp_path, filename="../escape.jpg")

    def test_missing_element(self, tmp_path):
        with pytest.raises(ResolutionError):
            capture(self.page, tmp_path, filename="x.jpg", selector="#gone")
        assert list(tmp_path.iterdir()) == []

    def test_element_inside_frame(self, tmp_path):
        frame = self.page.add_frame(FakeFrame(name="f", elements={"#inner": [FakeElement("i")]}))
        capture(self.page, tmp_path, filename="inner.jpg", selector="#inner", context=FrameContext(frame))
        assert self.page.calls[-1][3] == "#inner"

    def test_listing(self, tmp_path):
        capture(self.page, tmp_path, filename="a.jpg", thumbnail=True)
        listing = list_screenshots(tmp_path)
        assert [item["filename"] for item in listing] == ["a.jpg"]
        assert listing[0]["thumbnail"] == "a.thumb.jpg"
        assert list_screenshots(tmp_path / "missing") == []


class TestScreenshotTools:
    def test_screenshot_tool_schedules_retention(self, ctx, event_loop):
        ctx.config["retention_max_files"] = 2

        async def run():
            outputs = []
            for i in range(4):
                outputs.append(json.loads(await screenshot_tools.screenshot(ctx, filename=f"s{i}.jpg")))
            await wait_for_cleanups()
            return outputs

        outputs = event_loop.run_until_complete(run())
        assert all(o["ok"] for o in outputs)
        assert outputs[0]["resource"] == "screenshot://s0.jpg"
        shots = [item["filename"] for item in json.loads(
            event_loop.run_until_complete(screenshot_tools.list_screenshots(ctx))
        )["screenshots"]]
        assert len(shots) == 2
        assert "s3.jpg" in shots

    def test_read_screenshot_bytes(self, ctx, event_loop):
        event_loop.run_until_complete(screenshot_tools.screenshot(ctx, filename="r.jpg"))
        data = screenshot_tools.read_screenshot(ctx, "r.jpg")
        assert data[:2] == b"\xff\xd8"
        with pytest.raises(ResolutionError):
            screenshot_tools.read_screenshot(ctx, "nope.jpg")

    def test_parse_screenshot_uses_ocr_worker(self, ctx, event_loop, monkeypatch):
        event_loop.run_until_complete(screenshot_tools.screenshot(ctx, filename="o.jpg"))
        seen = []

        def fake_recognize(path, language="eng"):
            seen.append((path.name, language))
            return "Hello World"

        monkeypatch.setattr(ctx.ocr, "recognize", fake_recognize)
        out = json.loads(event_loop.run_until_complete(screenshot_tools.parse_screenshot(ctx, "o.jpg", language="deu")))
        assert out["text"] == "Hello World"
        assert seen == [("o.jpg", "deu")]

    def test_auto_ocr_failure_does_not_fail_capture(self, ctx, event_loop, monkeypatch):
        def broken(path, language="eng"):
            raise RuntimeError("tesseract crashed")

        monkeypatch.setattr(ctx.ocr, "recognize", broken)
        out = json.loads(event_loop.run_until_complete(screenshot_tools.screenshot(ctx, filename="a.jpg", auto_ocr=True)))
        assert out["ok"] is True
        assert out["ocr_error"] == "tesseract crashed"
