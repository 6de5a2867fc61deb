"""Threaded submission/processing/retrieval helper for async codec mode.

Work flows feeder thread -> worker thread -> caller thread through two
bounded FIFO queues. The queue bound plays the role of a fixed pool of
codec buffers: the feeder blocks while all input slots are in flight and
the worker blocks while all output slots are unclaimed.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

# End-of-stream marker passed down both queues
_EOS = object()

# How often blocked threads re-check the stop flag (seconds)
_POLL_INTERVAL = 0.1

# Bound on joining helper threads after the caller has stopped
_JOIN_TIMEOUT = 5.0


@dataclass(frozen=True)
class _Failure:
    error: Exception


def run_pipelined(
    items: Iterable[T],
    process: Callable[[T], Iterable[R]],
    flush: Callable[[], Iterable[R]],
    consume: Callable[[R], None],
    *,
    depth: int = 8,
    name: str = "codec",
) -> None:
    """Run a producer/codec/consumer pipeline across three threads.

    Items are pulled from ``items`` on a feeder thread. ``process`` and
    then ``flush`` run on a single worker thread, so codec state is never
    touched concurrently. ``consume`` runs on the calling thread and sees
    results in exactly the order a sequential loop would produce them.

    Blocks until every result has been consumed.

    Args:
        items: Input units, in submission order.
        process: Turns one input unit into zero or more results.
        flush: Drains results still held once the input is exhausted.
        consume: Receives each result on the calling thread.
        depth: Capacity of each queue.
        name: Prefix for the helper thread names.

    Raises:
        ValueError: If depth is not positive.
        Exception: The first exception raised by items, process, flush or
            consume, re-raised on the calling thread.
    """
    if depth <= 0:
        raise ValueError(f"depth must be positive, got {depth}")

    inputs: queue.Queue[Any] = queue.Queue(maxsize=depth)
    outputs: queue.Queue[Any] = queue.Queue(maxsize=depth)
    stop_event = threading.Event()

    def put(q: queue.Queue[Any], item: Any) -> bool:
        while not stop_event.is_set():
            try:
                q.put(item, timeout=_POLL_INTERVAL)
                return True
            except queue.Full:
                continue
        return False

    def get(q: queue.Queue[Any]) -> Any:
        while not stop_event.is_set():
            try:
                return q.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                continue
        return _EOS

    def feed() -> None:
        try:
            for item in items:
                if not put(inputs, item):
                    return
        except Exception as e:
            # Travels behind the items already queued so ordering holds
            put(inputs, _Failure(e))
            return
        put(inputs, _EOS)

    def work() -> None:
        try:
            while True:
                item = get(inputs)
                if item is _EOS:
                    break
                if isinstance(item, _Failure):
                    put(outputs, item)
                    return
                for result in process(item):
                    if not put(outputs, result):
                        return
            if stop_event.is_set():
                return
            for result in flush():
                if not put(outputs, result):
                    return
        except Exception as e:
            put(outputs, _Failure(e))
            return
        put(outputs, _EOS)

    threads = [
        threading.Thread(target=feed, name=f"{name}-feeder", daemon=True),
        threading.Thread(target=work, name=f"{name}-worker", daemon=True),
    ]
    for thread in threads:
        thread.start()

    failure: Exception | None = None
    try:
        while True:
            result = outputs.get()
            if result is _EOS:
                break
            if isinstance(result, _Failure):
                failure = result.error
                break
            consume(result)
    finally:
        stop_event.set()
        for thread in threads:
            thread.join(timeout=_JOIN_TIMEOUT)
            if thread.is_alive():
                logger.error(
                    "Thread %s failed to stop. Thread will be abandoned.",
                    thread.name,
                )

    if failure is not None:
        raise failure
