"""A doubly linked sequence with constant time push and pop at both ends.

The :code:`Deque` is not thread safe. It is the storage of
:py:class:`topicq.util.queue.BoundedQueue`, which guards every access with its
own lock.
"""

from typing import Generic, Iterator, Optional, TypeVar

T = TypeVar("T")


class EmptyDequeError(IndexError):
    """Raise if a value is popped from an empty deque."""


class Node(Generic[T]):
    """A single element of a :code:`Deque`. Only the owning deque links nodes."""

    __slots__ = ("value", "next", "prev")

    def __init__(self, value: T) -> None:
        self.value = value
        self.next: Optional["Node[T]"] = None
        self.prev: Optional["Node[T]"] = None


class Deque(Generic[T]):
    """Doubly linked list owning its nodes."""

    def __init__(self) -> None:
        self._head: Optional[Node[T]] = None
        self._tail: Optional[Node[T]] = None
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def __bool__(self) -> bool:
        return self._size > 0

    def __iter__(self) -> Iterator[T]:
        node = self._head
        while node is not None:
            yield node.value
            node = node.next

    def __repr__(self) -> str:
        return f"Deque({list(self)!r})"

    def push_back(self, value: T) -> None:
        """Append value after the tail."""
        node = Node(value)
        if self._tail is None:
            self._head = self._tail = node
        else:
            node.prev = self._tail
            self._tail.next = node
            self._tail = node
        self._size += 1

    def push_front(self, value: T) -> None:
        """Insert value before the head."""
        node = Node(value)
        if self._head is None:
            self._head = self._tail = node
        else:
            node.next = self._head
            self._head.prev = node
            self._head = node
        self._size += 1

    def pop_front(self) -> T:
        """Remove and return the value at the head.

        Raises
        ------
        EmptyDequeError
            If the deque holds no values.
        """
        node = self._head
        if node is None:
            raise EmptyDequeError("pop from an empty deque")
        self._head = node.next
        if self._head is None:
            self._tail = None
        else:
            self._head.prev = None
        self._size -= 1
        node.next = None
        return node.value

    def pop_back(self) -> T:
        """Remove and return the value at the tail.

        Raises
        ------
        EmptyDequeError
            If the deque holds no values.
        """
        node = self._tail
        if node is None:
            raise EmptyDequeError("pop from an empty deque")
        self._tail = node.prev
        if self._tail is None:
            self._head = None
        else:
            self._tail.next = None
        self._size -= 1
        node.prev = None
        return node.value

    def peek_front(self) -> T:
        """Return the value at the head without removing it."""
        if self._head is None:
            raise EmptyDequeError("peek into an empty deque")
        return self._head.value

    def clear(self) -> None:
        """Unlink every node."""
        node = self._head
        while node is not None:
            following = node.next
            node.prev = node.next = None
            node = following
        self._head = self._tail = None
        self._size = 0
