"""Tests for the stacking-order allocator."""

import threading

from canvas_board.zorder import ZOrderAllocator


class TestZOrderAllocator:
    def test_values_strictly_increase(self):
        allocator = ZOrderAllocator()
        values = [allocator.next() for _ in range(100)]
        assert values[0] > 0
        assert all(b > a for a, b in zip(values, values[1:]))
        assert allocator.current == values[-1]

    def test_start_offset(self):
        allocator = ZOrderAllocator(start=41)
        assert allocator.next() == 42

    def test_concurrent_callers_never_share_a_value(self):
        allocator = ZOrderAllocator()
        results: list[int] = []
        lock = threading.Lock()

        def worker():
            got = [allocator.next() for _ in range(500)]
            with lock:
                results.extend(got)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 4000
        assert len(set(results)) == 4000
        assert allocator.current == 4000

    def test_separate_allocators_are_independent(self):
        first = ZOrderAllocator()
        second = ZOrderAllocator()
        first.next()
        first.next()
        assert second.next() == 1
