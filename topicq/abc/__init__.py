# pylint: disable=missing-docstring
from .exceptions import InvalidConfigurationError, TopicqException
