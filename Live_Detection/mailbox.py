from __future__ import annotations

import threading
from typing import Generic, Optional, Tuple, TypeVar


T = TypeVar("T")


class LatestSlot(Generic[T]):
    """
    Thread-safe single-slot mailbox: capacity 1, a new item overwrites the
    pending one.

    Used as the analyzer inbox (stale camera frames are dropped instead of
    queued) and as the display slot (the display shows whatever arrived last).
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._item: Optional[T] = None
        self._has_item = False
        self._closed = False
        self.overwritten = 0
        self.version = 0

    def put(self, item: T) -> bool:
        """Store `item`. Returns False if it replaced a pending, untaken item."""
        with self._cond:
            if self._closed:
                raise RuntimeError("put() on a closed slot")
            replaced = self._has_item
            if replaced:
                self.overwritten += 1
            self._item = item
            self._has_item = True
            self.version += 1
            self._cond.notify_all()
            return not replaced

    def take(self, timeout: Optional[float] = None) -> Optional[T]:
        """
        Remove and return the pending item, waiting up to `timeout` seconds.

        Returns None on timeout, or once the slot is closed and empty.
        """
        with self._cond:
            if not self._cond.wait_for(lambda: self._has_item or self._closed, timeout=timeout):
                return None
            if not self._has_item:
                return None
            item = self._item
            self._item = None
            self._has_item = False
            return item

    def peek(self) -> Optional[T]:
        """Latest item without removing it (None if empty)."""
        with self._cond:
            return self._item if self._has_item else None

    def snapshot(self) -> Tuple[int, Optional[T]]:
        """(version, latest item) so pollers can tell whether anything new arrived."""
        with self._cond:
            return self.version, (self._item if self._has_item else None)

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed
