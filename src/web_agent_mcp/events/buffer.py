"""Fixed-capacity, insertion-ordered, drop-oldest event log."""

import threading
from collections import deque
from typing import Deque, Generic, List, Optional, TypeVar

T = TypeVar("T")


def _matches(record, term: str) -> bool:
    kind = str(getattr(record, "kind", "")).lower()
    text = str(getattr(record, "text", "")).lower()
    return kind == term or term in text


class BoundedEventBuffer(Generic[T]):
    """
    Append-only log shared between page listeners and explicit readers.

    Appends past capacity evict from the oldest end. Reads return a fresh
    list, and read+clear happens under the same lock as append so no record
    is lost or returned twice.
    """

    def __init__(self, capacity: int = 1000, name: str = "events"):
        if capacity < 1:
            raise ValueError(f"{name} buffer capacity must be >= 1, got {capacity}")
        self.name = name
        self._records: Deque[T] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._records.maxlen

    def append(self, record: T) -> None:
        with self._lock:
            self._records.append(record)

    def read_all(self, clear: bool = False, filter: Optional[str] = None, limit: Optional[int] = None) -> List[T]:
        """
        Snapshot the buffer, optionally clearing it in the same step.

        ``filter`` keeps records whose kind equals the term or whose text
        contains it (case-insensitive). ``limit`` keeps the most recent N
        after filtering; 0 or None means no limit.
        """
        if limit is not None and limit < 0:
            raise ValueError(f"limit must be >= 0, got {limit}")
        with self._lock:
            snapshot = list(self._records)
            if clear:
                self._records.clear()
        if filter:
            term = filter.lower()
            snapshot = [r for r in snapshot if _matches(r, term)]
        if limit:
            snapshot = snapshot[-limit:]
        return snapshot

    def configure_capacity(self, capacity: int) -> None:
        """Resize; shrinking keeps the most recent records."""
        if capacity < 1:
            raise ValueError(f"{self.name} buffer capacity must be >= 1, got {capacity}")
        with self._lock:
            self._records = deque(self._records, maxlen=capacity)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
