"""This module contains the topic broker which connects producers and consumers by topic name.

Every topic is backed by exactly one :py:class:`~topicq.util.queue.BoundedQueue`.
The queue is created on the first reference to the topic, regardless of whether
that is a publish, a subscribe or a stop signal, and is never recreated.

..  code-block:: python

    broker = Broker()
    points = Topic[CoordinateTask]("coordinates")
    subscription = broker.subscribe(points, handler)
    broker.publish(points, task)
    broker.stop_publishing(points)
    subscription.join()

Several producers feeding the same topic share a single stop flag. Use a
:py:class:`ProducerGroup` so that only the last producer to finish stops the
topic, otherwise the first finished producer truncates the output of all others.
"""

# pylint: disable=logging-fstring-interpolation
import logging
import threading
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar, Union

from attrs import define, field, validators

from topicq.abc.exceptions import InvalidConfigurationError, TopicqException
from topicq.util.defaults import DEFAULT_QUEUE_CAPACITY
from topicq.util.queue import END_OF_STREAM, BoundedQueue, InvalidCapacityError

logger = logging.getLogger("Broker")

T = TypeVar("T")


@define(frozen=True)
class Topic(Generic[T]):
    """A typed handle for a topic name.

    The type parameter documents the payload type of the topic, publishing and
    subscribing through the same handle keeps both sides consistent.
    """

    name: str = field(validator=[validators.instance_of(str), validators.min_len(1)])

    def __str__(self) -> str:
        return self.name


TopicRef = Union[str, Topic[Any]]
Handler = Callable[[Any], None]


def _topic_name(topic: TopicRef) -> str:
    if isinstance(topic, Topic):
        return topic.name
    if not isinstance(topic, str) or not topic:
        raise TopicqException(f"Invalid topic: {topic!r}")
    return topic


class ProducerGroupError(TopicqException):
    """Raise if a producer group is completed more often than it has producers."""


class Subscription(threading.Thread):
    """A consumer worker that hands every item of a topic queue to a handler.

    The worker ends when the queue signals end of stream or when the handler
    raises. The exception is kept in :code:`error` and ends this consumer only.
    """

    def __init__(
        self,
        queue: BoundedQueue,
        handler: Handler,
        name: str,
        deliver_end_of_stream: bool = False,
    ) -> None:
        super().__init__(name=name, daemon=True)
        self._queue = queue
        self._handler = handler
        self._deliver_end_of_stream = deliver_end_of_stream
        self.delivered = 0
        self.error: Optional[BaseException] = None

    @property
    def failed(self) -> bool:
        """True if the handler terminated this consumer with an exception."""
        return self.error is not None

    def run(self) -> None:
        logger.debug(f"Subscription '{self.name}' started")
        try:
            while True:
                value = self._queue.dequeue()
                if value is END_OF_STREAM:
                    break
                self._handler(value)
                self.delivered += 1
            if self._deliver_end_of_stream:
                self._handler(END_OF_STREAM)
        except Exception as error:  # pylint: disable=broad-except
            self.error = error
            logger.error(
                f"Subscription '{self.name}' terminated after {self.delivered} items: {error}"
            )
            return
        logger.debug(f"Subscription '{self.name}' finished after {self.delivered} items")


class Broker:
    """Registry of topic queues with publish and subscribe operations.

    Parameters
    ----------
    default_capacity : int
        Capacity of queues created on first reference to a topic.
    """

    def __init__(self, default_capacity: int = DEFAULT_QUEUE_CAPACITY) -> None:
        if (
            isinstance(default_capacity, bool)
            or not isinstance(default_capacity, int)
            or default_capacity <= 0
        ):
            raise InvalidCapacityError(default_capacity)
        self.default_capacity = default_capacity
        self._topics: Dict[str, BoundedQueue] = {}
        self._lock = threading.Lock()
        self._subscription_count = 0

    def __contains__(self, topic: TopicRef) -> bool:
        with self._lock:
            return _topic_name(topic) in self._topics

    def topics(self) -> List[str]:
        """Names of all topics materialized so far."""
        with self._lock:
            return list(self._topics)

    def declare(self, topic: TopicRef, capacity: Optional[int] = None) -> BoundedQueue:
        """Return the queue of topic, creating it with the given capacity if it does not exist.

        An existing queue is returned unchanged.
        """
        name = _topic_name(topic)
        with self._lock:
            queue = self._topics.get(name)
            if queue is None:
                queue = BoundedQueue(
                    self.default_capacity if capacity is None else capacity, name=name
                )
                self._topics[name] = queue
                logger.debug(f"Created topic '{name}' with capacity {queue.capacity}")
            return queue

    def topic(self, topic: TopicRef) -> BoundedQueue:
        """Return the queue of topic, creating it with the default capacity if needed."""
        return self.declare(topic)

    def publish(self, topic: TopicRef, value: Any) -> bool:
        """Enqueue value on topic, blocking while the topic queue is full.

        Returns :code:`False` if the topic stopped publishing and the value was dropped.
        """
        return self.topic(topic).enqueue(value)

    def subscribe(
        self,
        topic: TopicRef,
        handler: Handler,
        name: Optional[str] = None,
        deliver_end_of_stream: bool = False,
    ) -> Subscription:
        """Start a consumer thread that calls handler with every item of topic.

        Each call adds one more competing consumer, every item is delivered to
        exactly one of them. The handler is not called with the end of stream
        sentinel unless :code:`deliver_end_of_stream` is set, then it is called
        once with :code:`None` before the consumer exits.
        """
        queue = self.topic(topic)
        with self._lock:
            self._subscription_count += 1
            number = self._subscription_count
        subscription = Subscription(
            queue,
            handler,
            name=name or f"{queue.name}-consumer-{number}",
            deliver_end_of_stream=deliver_end_of_stream,
        )
        subscription.start()
        return subscription

    def stop_publishing(self, topic: TopicRef) -> None:
        """Stop the topic: no further items are accepted, consumers drain and exit."""
        self.topic(topic).stop()
        logger.info(f"Stopped publishing to topic '{_topic_name(topic)}'")

    def has_stopped_publishing(self, topic: TopicRef) -> bool:
        """Return :code:`True` once :py:meth:`stop_publishing` was called for topic."""
        return not self.topic(topic).is_running()

    def shut_down(self) -> None:
        """Stop every known topic so that all blocked producers and consumers return."""
        with self._lock:
            queues = list(self._topics.values())
        for queue in queues:
            queue.stop()
        logger.debug(f"Stopped {len(queues)} topics")


class ProducerGroup:
    """Countdown that stops a topic when the last of its producers is done.

    Parameters
    ----------
    broker : Broker
        The broker owning the topic.
    topic : str or Topic
        The topic all producers of this group publish to.
    producer_count : int
        Number of producers that have to call :py:meth:`done`.
    """

    def __init__(self, broker: Broker, topic: TopicRef, producer_count: int) -> None:
        if isinstance(producer_count, bool) or not isinstance(producer_count, int):
            raise InvalidConfigurationError(
                f"Producer count must be an integer, got: {producer_count!r}"
            )
        if producer_count <= 0:
            raise InvalidConfigurationError(
                f"Producer count must be greater than 0, got: {producer_count}"
            )
        self.broker = broker
        self.topic = topic
        self.producer_count = producer_count
        self._remaining = producer_count
        self._lock = threading.Lock()
        broker.topic(topic)

    @property
    def remaining(self) -> int:
        """Number of producers that did not call :py:meth:`done` yet."""
        with self._lock:
            return self._remaining

    def done(self) -> bool:
        """Mark one producer as finished.

        Returns :code:`True` for the call that stopped the topic.

        Raises
        ------
        ProducerGroupError
            If called more often than the group has producers.
        """
        with self._lock:
            if self._remaining == 0:
                raise ProducerGroupError(
                    f"All {self.producer_count} producers of topic '{_topic_name(self.topic)}' "
                    "already finished"
                )
            self._remaining -= 1
            last = self._remaining == 0
        if last:
            self.broker.stop_publishing(self.topic)
        return last
