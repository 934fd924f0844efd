"""Context managers to use with topicq"""

import logging
from contextlib import contextmanager

from topicq.util.logging import TopicqQueueListener, logqueue


@contextmanager
def logqueue_listener(logger_name: str):
    """Run logqueue listener for specified logger name."""
    console_logger = logging.getLogger(logger_name)
    if console_logger.handlers:
        listener = TopicqQueueListener(logqueue, console_logger.handlers[0])
        listener.start()
        try:
            yield
        finally:
            listener.stop()
    else:
        yield
