"""Bounded, order-preserving channel feeding one stage.

Every stage with an input owns one channel. All links pointing at the stage
write into it. ``put`` blocks while the channel is full, which is how a slow
destination throttles the source feeding it.
"""

import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Optional

from rowflow.logging import get_logger

logger = get_logger(__name__)


class _EndOfData:
    def __repr__(self) -> str:
        return "END_OF_DATA"


END_OF_DATA = _EndOfData()


@dataclass(frozen=True)
class ChannelFault:
    """Queued in place of a row when an upstream stage faulted."""

    origin_stage: str
    error: BaseException


class Channel:
    """Thread-safe FIFO with a capacity and completion counting.

    Args:
        capacity: Maximum number of buffered rows; ``None`` for unbounded
        owner: Name of the consuming stage, used in log messages
    """

    def __init__(self, capacity: Optional[int] = None, owner: str = "stage"):
        if capacity is not None and capacity < 1:
            raise ValueError("Channel capacity must be at least 1")
        self.capacity = capacity
        self.owner = owner
        self._items: Deque[Any] = deque()
        self._condition = threading.Condition()
        self._producers = 0
        self._pending_completions = 0
        self._completed = False
        self._faulted = False
        self._closed = False

    @property
    def is_completed(self) -> bool:
        return self._completed

    @property
    def is_closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        with self._condition:
            return len(self._items)

    def register_producer(self, propagate_completion: bool = True) -> None:
        """Announce a producer; only propagating producers are awaited."""
        with self._condition:
            self._producers += 1
            if propagate_completion:
                self._pending_completions += 1

    def put(self, item: Any) -> bool:
        """Append ``item``, blocking while the channel is full.

        Returns:
            False when the consumer has closed the channel and the item was
            dropped
        """
        with self._condition:
            while (
                not self._closed
                and self.capacity is not None
                and len(self._items) >= self.capacity
            ):
                self._condition.wait()
            if self._closed:
                return False
            if self._completed:
                logger.warning("%s received a row after completion; row dropped", self.owner)
                return False
            self._items.append(item)
            self._condition.notify_all()
            return True

    def complete_one(self) -> None:
        """Signal that one propagating producer has finished."""
        with self._condition:
            self._pending_completions -= 1
            if self._pending_completions <= 0:
                self._mark_completed()

    def complete(self) -> None:
        """Complete the channel regardless of outstanding producers."""
        with self._condition:
            self._mark_completed()

    def _mark_completed(self) -> None:
        if not self._completed:
            self._completed = True
            logger.debug("Input of %s completed", self.owner)
            self._condition.notify_all()

    def fault(self, origin_stage: str, error: BaseException) -> None:
        """Queue an upstream fault behind the rows already buffered.

        Only the first fault is kept; it bypasses the capacity limit.
        """
        with self._condition:
            if self._faulted or self._closed:
                return
            self._faulted = True
            self._items.append(ChannelFault(origin_stage, error))
            self._condition.notify_all()

    def get(self) -> Any:
        """Return the next item, a :class:`ChannelFault` or ``END_OF_DATA``."""
        with self._condition:
            while not self._items and not self._completed and not self._closed:
                self._condition.wait()
            if self._items:
                item = self._items.popleft()
                self._condition.notify_all()
                return item
            return END_OF_DATA

    def close(self) -> None:
        """Called by a faulted consumer: drop buffered rows, release producers."""
        with self._condition:
            self._closed = True
            self._items.clear()
            self._condition.notify_all()
