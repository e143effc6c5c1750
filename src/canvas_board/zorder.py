"""Stacking-order allocation."""

from __future__ import annotations

import threading


class ZOrderAllocator:
    """Issues strictly increasing stacking-order values.

    One allocator is shared by everything drawn on a board.  ``next()``
    is atomic, so concurrent UI event handlers never receive the same
    value twice.
    """

    def __init__(self, start: int = 0):
        self._current = start
        self._lock = threading.Lock()

    @property
    def current(self) -> int:
        """The most recently issued value (or the start value)."""
        return self._current

    def next(self) -> int:
        with self._lock:
            self._current += 1
            return self._current
