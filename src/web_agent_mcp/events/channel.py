"""Queue of page-originated events, drained explicitly between operations."""

import threading
from collections import defaultdict, deque
from typing import Any, Callable, Deque, Dict, List, Tuple

import logging
logger = logging.getLogger(__name__)


class EventChannel:
    """
    The page driver pushes ``(event, payload)`` pairs with ``emit``; nothing
    is dispatched until ``drain`` runs, which calls the registered handlers
    in arrival order. Handler errors propagate and leave later events queued.
    """

    def __init__(self):
        self._queue: Deque[Tuple[str, Any]] = deque()
        self._handlers: Dict[str, List[Callable[[Any], Any]]] = defaultdict(list)
        self._lock = threading.Lock()

    def on(self, event: str, handler: Callable[[Any], Any]) -> None:
        self._handlers[event].append(handler)

    def off(self, event: str, handler: Callable[[Any], Any]) -> None:
        handlers = self._handlers.get(event) or []
        if handler in handlers:
            handlers.remove(handler)

    def listener_count(self, event: str) -> int:
        return len(self._handlers.get(event) or [])

    def emit(self, event: str, payload: Any) -> None:
        with self._lock:
            self._queue.append((event, payload))

    def pending(self) -> int:
        with self._lock:
            return len(self._queue)

    def drain(self) -> int:
        """Dispatch every queued event; returns how many were dispatched."""
        dispatched = 0
        while True:
            with self._lock:
                if not self._queue:
                    return dispatched
                event, payload = self._queue.popleft()
            handlers = list(self._handlers.get(event) or [])
            if not handlers:
                logger.debug(f"No listener for {event!r}; event dropped")
            for handler in handlers:
                handler(payload)
            dispatched += 1
