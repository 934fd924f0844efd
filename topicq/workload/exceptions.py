"""This module contains errors raised while reading workload input."""

from topicq.abc.exceptions import TopicqException


class InputFormatError(TopicqException):
    """Raise if a line of an input file can not be parsed."""

    def __init__(self, line_number: int, line: str, reason: str) -> None:
        super().__init__(f"Invalid input on line {line_number}: '{line}' ({reason})")
