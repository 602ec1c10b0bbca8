"""
Tracking of the active document context (main page or one iframe).

The active context is a tagged value: ``MAIN`` or ``FrameContext(frame)``.
Consumers call ``FrameTracker.resolve()`` and hand the result to
``page.scoped(...)``; nothing else needs to know about iframes.
"""

from dataclasses import dataclass, asdict
from typing import Any, List, Optional, Union

from .errors import ResolutionError, FrameDetachedError

import logging
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MainContext:
    def to_dict(self) -> dict:
        return {"main": True}


MAIN = MainContext()


@dataclass(frozen=True)
class FrameContext:
    frame: Any


ActiveContext = Union[MainContext, FrameContext]


@dataclass(frozen=True)
class FrameInfo:
    index: Optional[int]
    name: str
    url: str

    def to_dict(self) -> dict:
        return {"main": False, **asdict(self)}


def _describe(frame, index: Optional[int]) -> FrameInfo:
    return FrameInfo(index=index, name=frame.name or "(unnamed)", url=frame.url or "about:blank")


class FrameTracker:
    """Holds the current frame; every page-facing consumer resolves through it."""

    def __init__(self):
        self._current: ActiveContext = MAIN
        self._info: Optional[FrameInfo] = None

    def switch_to_frame(
        self,
        page,
        selector: Optional[str] = None,
        name: Optional[str] = None,
        index: Optional[int] = None,
    ) -> FrameInfo:
        """
        Make one iframe of the main page the active context.

        Exactly one of ``selector``, ``name`` or ``index`` must be given.
        ``index`` counts the iframes listed by ``list_frames`` (main page
        excluded, document order). A failed switch leaves the previous
        context untouched.
        """
        given = [value for value in (selector, name, index) if value is not None]
        if len(given) != 1:
            raise ValueError("Must provide exactly one of selector, name, or index")

        frames = page.frames()

        if index is not None:
            if not 0 <= index < len(frames):
                if frames:
                    message = f"Frame index {index} out of range (0-{len(frames) - 1})"
                else:
                    message = f"Frame index {index} out of range (page has no iframes)"
                raise ResolutionError(message, locator=str(index))
            frame = frames[index]
            position = index
        elif selector is not None:
            element = page.query_selector(selector)
            if element is None:
                raise ResolutionError(f"No iframe found with selector: {selector}", locator=selector)
            frame = page.content_frame(element)
            if frame is None:
                raise ResolutionError(f"Element with selector {selector} is not an iframe", locator=selector)
            position = frames.index(frame) if frame in frames else None
        else:
            positions = [i for i, candidate in enumerate(frames) if candidate.name == name]
            if not positions:
                raise ResolutionError(f"No iframe found with name: {name}", locator=name)
            position = positions[0]
            frame = frames[position]

        info = _describe(frame, position)
        self._current = FrameContext(frame)
        self._info = info
        logger.debug(f"Switched to frame {info}")
        return info

    def switch_to_main(self) -> None:
        self._current = MAIN
        self._info = None

    def current_frame(self) -> Union[FrameInfo, MainContext]:
        if isinstance(self._current, FrameContext):
            return self._info
        return MAIN

    def list_frames(self, page) -> List[FrameInfo]:
        return [_describe(frame, i) for i, frame in enumerate(page.frames())]

    def resolve(self) -> ActiveContext:
        """
        Return the active context, falling back to ``MAIN``.

        A stored frame that has been detached is cleared and reported with
        FrameDetachedError instead of being handed to the driver.
        """
        current = self._current
        if isinstance(current, FrameContext) and current.frame.is_detached():
            stale = self._info
            self.switch_to_main()
            raise FrameDetachedError(
                f"Frame {stale.name} ({stale.url}) is no longer attached; switched back to main content",
                locator=stale.name,
            )
        return current
