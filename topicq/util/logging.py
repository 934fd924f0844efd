"""helper classes for topicq logging"""

import logging
import queue
from logging.handlers import QueueListener
from socket import gethostname

logqueue: queue.Queue = queue.Queue(-1)


class TopicqFormatter(logging.Formatter):
    """
    A custom formatter for topicq logging with additional attributes.

    The available attributes are listed in the
    `python documentation <https://docs.python.org/3/library/logging.html#logrecord-attributes>`_ .
    Additionally, the formatter provides the following topicq specific attributes:

    .. table::

        +-----------------------+--------------------------------------------------+
        | attribute             | description                                      |
        +=======================+==================================================+
        | %(hostname)           | (topicq specific) The hostname of the machine    |
        |                       | where the log was emitted                        |
        +-----------------------+--------------------------------------------------+

    """

    def format(self, record):
        record.hostname = gethostname()
        return super().format(record)


class TopicqQueueListener(QueueListener):
    """QueueListener that honours the level of its handlers.

    Worker threads only put records on the queue, so a slow console never
    holds up a producer or consumer.
    """

    def __init__(self, log_queue: queue.Queue, *handlers: logging.Handler) -> None:
        super().__init__(log_queue, *handlers, respect_handler_level=True)
