import queue
import threading
from collections import deque
from collections.abc import Iterator

from asciichat.errors import InboxClosed


class Inbox:
    """Bounded FIFO of messages for one participant.

    Writers never block: `offer` reports whether the message was accepted.
    Readers block in `get` until a message arrives or the inbox is closed.
    Messages queued before `close` can still be drained.
    """

    def __init__(self, capacity: int = 256):
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._items: deque[str] = deque()
        self._cond = threading.Condition()
        self._closed = False

    def offer(self, message: str) -> bool:
        with self._cond:
            if self._closed or len(self._items) >= self.capacity:
                return False
            self._items.append(message)
            self._cond.notify()
            return True

    def get(self, timeout: float | None = None) -> str:
        with self._cond:
            if not self._cond.wait_for(lambda: self._items or self._closed, timeout):
                raise queue.Empty
            if self._items:
                return self._items.popleft()
            raise InboxClosed("inbox closed")

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    @property
    def closed(self) -> bool:
        return self._closed

    def snapshot(self) -> list[str]:
        with self._cond:
            return list(self._items)

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    def __iter__(self) -> Iterator[str]:
        while True:
            try:
                yield self.get()
            except InboxClosed:
                return
