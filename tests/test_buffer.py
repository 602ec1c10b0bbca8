# tests/test_buffer.py
import threading

import pytest

from web_agent_mcp.events.buffer import BoundedEventBuffer
from web_agent_mcp.events.records import ConsoleRecord


def _rec(i, kind="log"):
    return ConsoleRecord(kind=kind, text=f"message {i}", timestamp_ms=1_700_000_000_000 + i)


class TestBoundedEventBuffer:
    def setup_method(self):
        self.buffer = BoundedEventBuffer(capacity=1000, name="console")

    def test_keeps_the_most_recent_records_in_order(self):
        for i in range(1001):
            self.buffer.append(_rec(i))
        records = self.buffer.read_all()
        assert len(records) == 1000
        assert records[0].text == "message 1"
        assert records[-1].text == "message 1000"

    def test_read_without_clear_leaves_contents(self):
        for i in range(3):
            self.buffer.append(_rec(i))
        assert self.buffer.read_all() == self.buffer.read_all()
        assert len(self.buffer) == 3

    def test_read_with_clear_returns_then_empties(self):
        for i in range(3):
            self.buffer.append(_rec(i))
        first = self.buffer.read_all(clear=True)
        assert [r.text for r in first] == ["message 0", "message 1", "message 2"]
        assert self.buffer.read_all() == []

    def test_returned_list_is_a_copy(self):
        self.buffer.append(_rec(0))
        snapshot = self.buffer.read_all()
        snapshot.clear()
        assert len(self.buffer) == 1

    def test_filter_matches_kind_or_text(self):
        self.buffer.append(_rec(0, kind="error"))
        self.buffer.append(ConsoleRecord("log", "Error happened elsewhere", 1))
        self.buffer.append(ConsoleRecord("log", "fine", 2))
        assert len(self.buffer.read_all(filter="error")) == 2
        assert [r.text for r in self.buffer.read_all(filter="ELSEWHERE")] == ["Error happened elsewhere"]

    def test_limit_keeps_last_n_after_filter(self):
        for i in range(10):
            self.buffer.append(_rec(i, kind="error" if i % 2 else "log"))
        records = self.buffer.read_all(filter="error", limit=2)
        assert [r.text for r in records] == ["message 7", "message 9"]

    def test_limit_zero_means_all(self):
        for i in range(4):
            self.buffer.append(_rec(i))
        assert len(self.buffer.read_all(limit=0)) == 4

    def test_negative_limit_rejected(self):
        with pytest.raises(ValueError):
            self.buffer.read_all(limit=-1)

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError):
            BoundedEventBuffer(capacity=0)

    def test_shrinking_keeps_newest(self):
        for i in range(10):
            self.buffer.append(_rec(i))
        self.buffer.configure_capacity(3)
        assert self.buffer.capacity == 3
        assert [r.text for r in self.buffer.read_all()] == ["message 7", "message 8", "message 9"]

    def test_concurrent_append_and_clear_lose_nothing(self):
        buffer = BoundedEventBuffer(capacity=100_000)
        seen = []
        stop = threading.Event()

        def writer(offset):
            for i in range(2000):
                buffer.append(_rec(offset + i))

        def reader():
            while not stop.is_set():
                seen.extend(buffer.read_all(clear=True))

        threads = [threading.Thread(target=writer, args=(n * 10_000,)) for n in range(4)]
        drainer = threading.Thread(target=reader)
        drainer.start()
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        stop.set()
        drainer.join()
        seen.extend(buffer.read_all(clear=True))

        texts = [r.text for r in seen]
        assert len(texts) == 8000
        assert len(set(texts)) == 8000
