"""This module implements the bounded queue primitive shared by producer and consumer threads.

A :code:`BoundedQueue` blocks producers while it is full and consumers while it
is empty. Stopping a queue is a one way transition: producers blocked on a full
queue give up, consumers drain what is buffered and afterwards receive the
end of stream sentinel :code:`None` on every call.

..  code-block:: python

    queue = BoundedQueue(capacity=2)
    queue.enqueue("A")
    queue.stop()
    assert queue.dequeue() == "A"
    assert queue.dequeue() is None
"""

import logging
import threading
from enum import Enum
from typing import Generic, Optional, TypeVar

from topicq.abc.exceptions import InvalidConfigurationError, TopicqException
from topicq.util.defaults import DEFAULT_QUEUE_CAPACITY
from topicq.util.deque import Deque

logger = logging.getLogger("Queue")

T = TypeVar("T")

END_OF_STREAM = None
"""The value :py:meth:`BoundedQueue.dequeue` returns once a stopped queue is drained."""


class InvalidCapacityError(InvalidConfigurationError, ValueError):
    """Raise if a queue is created with a capacity that can not hold any item."""

    def __init__(self, capacity: object) -> None:
        super().__init__(f"Queue capacity must be a positive integer, got: {capacity!r}")


class InvalidPayloadError(TopicqException, ValueError):
    """Raise if the end of stream sentinel is enqueued as a payload."""

    def __init__(self) -> None:
        super().__init__("None is reserved as end of stream signal and can not be enqueued")


class QueueState(Enum):
    """Lifecycle of a :code:`BoundedQueue`."""

    RUNNING = "running"
    STOPPED_DRAINING = "stopped-draining"
    STOPPED_DRAINED = "stopped-drained"


class BoundedQueue(Generic[T]):
    """FIFO queue with a fixed capacity, blocking backpressure and a stop signal.

    Parameters
    ----------
    capacity : int
        Maximum number of buffered items. Defaults to :code:`25`.
    name : str
        Used in log messages only.

    Raises
    ------
    InvalidCapacityError
        If capacity is not a positive integer.
    """

    def __init__(self, capacity: int = DEFAULT_QUEUE_CAPACITY, name: str = "queue") -> None:
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
            raise InvalidCapacityError(capacity)
        self.name = name
        self._capacity = capacity
        self._items: Deque[T] = Deque()
        self._running = True
        self._lock = threading.Lock()
        self._not_full = threading.Condition(self._lock)
        self._not_empty = threading.Condition(self._lock)

    def __repr__(self) -> str:
        return f"BoundedQueue(name={self.name!r}, capacity={self._capacity}, state={self.state})"

    def __len__(self) -> int:
        return self.size()

    @property
    def capacity(self) -> int:
        """Maximum number of buffered items."""
        return self._capacity

    @property
    def state(self) -> QueueState:
        """Current lifecycle state."""
        with self._lock:
            if self._running:
                return QueueState.RUNNING
            if self._items:
                return QueueState.STOPPED_DRAINING
            return QueueState.STOPPED_DRAINED

    def size(self) -> int:
        """Return the number of buffered items."""
        with self._lock:
            return len(self._items)

    def is_running(self) -> bool:
        """Return :code:`False` once :py:meth:`stop` was called."""
        with self._lock:
            return self._running

    def enqueue(self, value: T) -> bool:
        """Append value, waiting while the queue is full and running.

        Returns
        -------
        bool
            :code:`True` if the value was buffered. :code:`False` if the queue was
            stopped before space became available, the value is dropped then.

        Raises
        ------
        InvalidPayloadError
            If value is the end of stream sentinel.
        """
        if value is END_OF_STREAM:
            raise InvalidPayloadError()
        with self._not_full:
            while self._running and len(self._items) >= self._capacity:
                logger.debug("Queue '%s' at capacity %d", self.name, self._capacity)
                self._not_full.wait()
            if not self._running:
                logger.debug("Queue '%s' is stopped, dropped published item", self.name)
                return False
            self._items.push_back(value)
            self._not_empty.notify()
            return True

    def dequeue(self) -> Optional[T]:
        """Remove and return the oldest value, waiting while the queue is empty and running.

        Returns
        -------
        T or None
            The oldest buffered value or :code:`None` if the queue is stopped and
            drained. Once :code:`None` was returned every later call returns
            :code:`None` immediately.
        """
        with self._not_empty:
            while self._running and not self._items:
                logger.debug("Queue '%s' is empty, waiting for producers", self.name)
                self._not_empty.wait()
            if not self._items:
                return END_OF_STREAM
            value = self._items.pop_front()
            self._not_full.notify()
            return value

    def stop(self) -> None:
        """Stop accepting items and wake every waiting producer and consumer.

        Calling stop on a stopped queue has no effect.
        """
        with self._lock:
            if not self._running:
                return
            self._running = False
            self._not_full.notify_all()
            self._not_empty.notify_all()
        logger.debug("Queue '%s' stopped", self.name)
