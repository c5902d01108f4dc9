"""Bounded, closable hand-off between the scheduler and the publisher."""

from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Generic, Optional, TypeVar

from .errors import ChannelClosed

T = TypeVar("T")


class HandoffChannel(Generic[T]):
    """FIFO with a fixed capacity.

    ``put`` blocks while the channel is full and raises ``ChannelClosed`` once
    the channel has been closed. ``get`` blocks while it is empty and returns
    ``None`` once it is closed and drained. Either side may close it.
    """

    def __init__(self, capacity: int = 1):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._items: Deque[T] = deque()
        self._closed = False
        self._lock = threading.Lock()
        self._not_full = threading.Condition(self._lock)
        self._not_empty = threading.Condition(self._lock)

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def put(self, item: T, timeout: Optional[float] = None) -> None:
        with self._not_full:
            if not self._not_full.wait_for(lambda: self._closed or len(self._items) < self.capacity, timeout):
                raise TimeoutError("hand-off channel stayed full")
            if self._closed:
                raise ChannelClosed("hand-off channel is closed")
            self._items.append(item)
            self._not_empty.notify()

    def get(self, timeout: Optional[float] = None) -> Optional[T]:
        with self._not_empty:
            if not self._not_empty.wait_for(lambda: self._closed or self._items, timeout):
                raise TimeoutError("hand-off channel stayed empty")
            if not self._items:
                return None
            item = self._items.popleft()
            self._not_full.notify()
            return item

    def close(self) -> None:
        with self._lock:
            self._closed = True
            self._not_full.notify_all()
            self._not_empty.notify_all()
