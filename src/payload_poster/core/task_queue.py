"""
Bounded FIFO channel that consumers can drain until it is closed and empty.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Generic, Iterator, TypeVar

T = TypeVar("T")


class QueueClosed(Exception):
    """Raised by put() on a closed queue and by get() once it is closed and drained."""


class ClosableQueue(Generic[T]):
    """Thread-safe buffer with a close() signal instead of sentinel values.

    Items already buffered when the queue is closed are still handed out;
    consumers stop only when the queue is both closed and empty.
    """

    def __init__(self, maxsize: int = 0) -> None:
        self.maxsize = maxsize
        self._items: Deque[T] = deque()
        self._closed = False
        self._mutex = threading.Lock()
        self._not_empty = threading.Condition(self._mutex)
        self._not_full = threading.Condition(self._mutex)

    def put(self, item: T) -> None:
        with self._not_full:
            if self._closed:
                raise QueueClosed("put on closed queue")
            while 0 < self.maxsize <= len(self._items):
                self._not_full.wait()
                if self._closed:
                    raise QueueClosed("queue closed while waiting for space")
            self._items.append(item)
            self._not_empty.notify()

    def get(self) -> T:
        with self._not_empty:
            while not self._items:
                if self._closed:
                    raise QueueClosed("queue closed and drained")
                self._not_empty.wait()
            item = self._items.popleft()
            self._not_full.notify()
            return item

    def close(self) -> None:
        with self._mutex:
            self._closed = True
            self._not_empty.notify_all()
            self._not_full.notify_all()

    @property
    def closed(self) -> bool:
        with self._mutex:
            return self._closed

    def __len__(self) -> int:
        with self._mutex:
            return len(self._items)

    def __iter__(self) -> Iterator[T]:
        while True:
            try:
                yield self.get()
            except QueueClosed:
                return


__all__ = ["ClosableQueue", "QueueClosed"]
