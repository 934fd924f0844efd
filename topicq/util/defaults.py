"""Default values for topicq."""

from enum import IntEnum


class EXITCODES(IntEnum):
    """Exit codes for topicq."""

    SUCCESS = 0
    """Successful execution."""
    ERROR = 1
    """General unspecified error."""
    CONFIGURATION_ERROR = 2
    """An error in the configuration."""
    PIPELINE_ERROR = 3
    """At least one producer or consumer terminated with an error."""


DEFAULT_QUEUE_CAPACITY = 25
DEFAULT_PRODUCER_COUNT = 2
DEFAULT_CONSUMER_COUNT = 1
DEFAULT_POINTS_PER_TASK = 100
DEFAULT_COORDINATE_TASK_COUNT = 250
DEFAULT_GRAPH_SIZE = 30
DEFAULT_GRAPH_COUNT = 200
DEFAULT_CONFIG_LOCATION = "./topicq.yml"
DEFAULT_LOG_FORMAT = "%(asctime)-15s %(threadName)-14s %(name)-10s %(levelname)-8s: %(message)s"
DEFAULT_LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# dictconfig as described in
# https://docs.python.org/3/library/logging.config.html#configuration-dictionary-schema
DEFAULT_LOG_CONFIG: dict = {
    "version": 1,
    "formatters": {
        "topicq": {
            "class": "topicq.util.logging.TopicqFormatter",
            "format": DEFAULT_LOG_FORMAT,
            "datefmt": DEFAULT_LOG_DATE_FORMAT,
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "topicq",
            "stream": "ext://sys.stdout",
        },
        "queue": {
            "class": "logging.handlers.QueueHandler",
            "queue": "ext://topicq.util.logging.logqueue",
        },
    },
    "loggers": {
        "root": {"level": "INFO", "handlers": ["queue"]},
        "console": {"handlers": ["console"]},
    },
    "filters": {},
    "disable_existing_loggers": False,
}
