"""Producer side of the worker contract.

A :code:`Producer` is a thread that reads payloads from a source and publishes
them to one topic. When the source is exhausted, or fails, the producer reports
to its :py:class:`~topicq.framework.broker.ProducerGroup` exactly once, and the
group stops the topic after its last producer reported.
"""

# pylint: disable=logging-fstring-interpolation
import logging
import threading
from typing import Generic, Iterable, Iterator, Optional, TypeVar

from topicq.framework.broker import Broker, ProducerGroup, TopicRef

logger = logging.getLogger("Producer")

T = TypeVar("T")


class SharedSource(Generic[T]):
    """Thread safe iterator over a single input shared by several producers.

    Every item of the wrapped iterable is handed to exactly one caller.
    """

    def __init__(self, iterable: Iterable[T]) -> None:
        self._iterator = iter(iterable)
        self._lock = threading.Lock()
        self._exhausted = False

    def __iter__(self) -> Iterator[T]:
        return self

    def __next__(self) -> T:
        with self._lock:
            if self._exhausted:
                raise StopIteration
            try:
                return next(self._iterator)
            except StopIteration:
                self._exhausted = True
                raise

    @property
    def exhausted(self) -> bool:
        """True after the wrapped iterable ran out of items."""
        return self._exhausted


class Producer(threading.Thread):
    """Publishes every item of a source to a topic, then completes its group.

    Parameters
    ----------
    broker : Broker
        Broker to publish to.
    topic : str or Topic
        Destination topic.
    source : Iterable
        Payload source, usually a :code:`SharedSource`.
    group : ProducerGroup
        Completion countdown of all producers of the topic.
    name : str
        Thread name, used in log messages.
    """

    def __init__(
        self,
        broker: Broker,
        topic: TopicRef,
        source: Iterable[T],
        group: ProducerGroup,
        name: Optional[str] = None,
    ) -> None:
        super().__init__(name=name, daemon=True)
        self._broker = broker
        self._topic = topic
        self._source = source
        self._group = group
        self.published = 0
        self.dropped = 0
        self.error: Optional[BaseException] = None

    @property
    def failed(self) -> bool:
        """True if reading the source raised."""
        return self.error is not None

    def run(self) -> None:
        try:
            for item in self._source:
                if self._broker.publish(self._topic, item):
                    self.published += 1
                else:
                    self.dropped += 1
                    # topic stopped from elsewhere, the rest would be dropped as well
                    break
        except Exception as error:  # pylint: disable=broad-except
            self.error = error
            logger.error(f"Producer '{self.name}' failed after {self.published} items: {error}")
        finally:
            self._group.done()
        logger.info(
            f"No more items to read, producer '{self.name}' is shutting down "
            f"(published: {self.published}, dropped: {self.dropped})"
        )
