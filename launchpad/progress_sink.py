"""
Progress sinks for progressive icon delivery.

A scan pushes zero or more batches of IconUpdate objects followed by
exactly one completion signal. Any object with push_batch(updates) and
push_complete() can receive them.
"""

import queue
from typing import Callable, Iterator, List, Optional, Protocol

from launchpad.app_metadata import IconUpdate


class ProgressSink(Protocol):
    def push_batch(self, updates: List[IconUpdate]) -> None: ...

    def push_complete(self) -> None: ...


class CallbackSink:
    """Forward batches and completion to plain callables."""

    def __init__(self, on_batch: Callable[[List[IconUpdate]], None],
                 on_complete: Optional[Callable[[], None]] = None):
        self.on_batch = on_batch
        self.on_complete = on_complete

    def push_batch(self, updates: List[IconUpdate]) -> None:
        self.on_batch(updates)

    def push_complete(self) -> None:
        if self.on_complete:
            self.on_complete()


_COMPLETE = object()


class QueueSink:
    """Channel sink: the scan writes, a consumer drains from another thread."""

    def __init__(self, maxsize: int = 0):
        self._queue = queue.Queue(maxsize)

    def push_batch(self, updates: List[IconUpdate]) -> None:
        self._queue.put(list(updates))

    def push_complete(self) -> None:
        self._queue.put(_COMPLETE)

    def drain(self, timeout: Optional[float] = None) -> Iterator[List[IconUpdate]]:
        """Yield batches in push order until the completion signal arrives.

        Raises queue.Empty if timeout elapses while waiting for the next item.
        """
        while True:
            item = self._queue.get(timeout=timeout)
            if item is _COMPLETE:
                return
            yield item
