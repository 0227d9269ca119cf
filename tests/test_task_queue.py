"""Tests for the closable task queue."""

from __future__ import annotations

import threading
import time

import pytest

from payload_poster.core.task_queue import ClosableQueue, QueueClosed


def test_items_come_out_in_fifo_order() -> None:
    queue: ClosableQueue[int] = ClosableQueue(maxsize=3)
    for item in (1, 2, 3):
        queue.put(item)

    assert len(queue) == 3
    assert [queue.get(), queue.get(), queue.get()] == [1, 2, 3]


def test_closed_queue_still_drains_buffered_items() -> None:
    queue: ClosableQueue[str] = ClosableQueue(maxsize=2)
    queue.put("a")
    queue.put("b")
    queue.close()

    assert queue.closed
    assert list(queue) == ["a", "b"]
    with pytest.raises(QueueClosed):
        queue.get()


def test_put_after_close_raises() -> None:
    queue: ClosableQueue[int] = ClosableQueue()
    queue.close()

    with pytest.raises(QueueClosed):
        queue.put(1)


def test_close_wakes_blocked_consumers() -> None:
    queue: ClosableQueue[int] = ClosableQueue()
    finished = threading.Event()

    def consume() -> None:
        for _ in queue:
            pass
        finished.set()

    thread = threading.Thread(target=consume)
    thread.start()
    time.sleep(0.05)
    assert not finished.is_set()

    queue.close()
    thread.join(timeout=2)
    assert finished.is_set()


def test_multiple_consumers_receive_each_item_once() -> None:
    queue: ClosableQueue[int] = ClosableQueue(maxsize=500)
    seen: list[int] = []
    lock = threading.Lock()

    def consume() -> None:
        for item in queue:
            with lock:
                seen.append(item)

    consumers = [threading.Thread(target=consume) for _ in range(4)]
    for consumer in consumers:
        consumer.start()
    for item in range(500):
        queue.put(item)
    queue.close()
    for consumer in consumers:
        consumer.join(timeout=5)

    assert sorted(seen) == list(range(500))


def test_put_blocks_when_full_until_space_frees() -> None:
    queue: ClosableQueue[int] = ClosableQueue(maxsize=1)
    queue.put(1)
    done = threading.Event()

    def produce() -> None:
        queue.put(2)
        done.set()

    thread = threading.Thread(target=produce)
    thread.start()
    time.sleep(0.05)
    assert not done.is_set()

    assert queue.get() == 1
    thread.join(timeout=2)
    assert done.is_set()
    assert queue.get() == 2
