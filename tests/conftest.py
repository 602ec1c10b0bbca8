# tests/conftest.py
import asyncio
import pytest

from _fakes import make_context

## We DO NOT want to use pytest-asyncio.
## Instead, use event_loop.run_until_complete()!


@pytest.fixture(scope="function")
def event_loop():
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    loop.close()


@pytest.fixture
def ctx(tmp_path):
    """Context on fake driver/page with screenshots under tmp_path."""
    return make_context({"screenshot_dir": str(tmp_path / "shots")})
