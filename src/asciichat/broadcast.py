import logging
import queue
import threading
from collections.abc import Callable, Iterable

from asciichat.registry import Participant

logger = logging.getLogger(__name__)

_SHUTDOWN = object()


class Dispatcher:
    """Single consumer that fans messages out to every participant's inbox.

    Delivery is best effort: a participant whose inbox is full misses the
    message, and neither the dispatcher nor the sender is held up by it.
    Closing the inbound queue stops the thread once queued messages are
    delivered.
    """

    def __init__(self, participants: Callable[[], Iterable[Participant]], capacity: int = 256):
        self._participants = participants
        self._queue: queue.Queue = queue.Queue(maxsize=capacity)
        self._closed = False
        self._close_lock = threading.Lock()
        self._thread = threading.Thread(target=self._run, name="asciichat-dispatcher", daemon=True)

    def start(self) -> "Dispatcher":
        self._thread.start()
        return self

    def publish(self, message: str) -> bool:
        """Queue a message for delivery. Returns False once the dispatcher is closed.

        The enqueue happens under the close lock, so an accepted message is always
        ahead of the shutdown sentinel and gets delivered.
        """
        with self._close_lock:
            if self._closed:
                logger.debug("Dispatcher closed, discarding message: %.40r", message)
                return False
            self._queue.put(message)
            return True

    def deliver(self, message: str) -> int:
        """Offer one message to every current participant. Returns the number accepted."""
        delivered = 0
        for participant in self._participants():
            if participant.inbox.offer(message):
                delivered += 1
            elif participant.inbox.closed:
                logger.debug("Inbox closed for %s, participant left", participant.name)
            else:
                logger.debug("Inbox full for %s, message dropped", participant.name)
        return delivered

    def _run(self) -> None:
        while True:
            message = self._queue.get()
            if message is _SHUTDOWN:
                break
            self.deliver(message)
        logger.debug("Dispatcher stopped")

    def close(self) -> None:
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put(_SHUTDOWN)

    def join(self, timeout: float | None = None) -> None:
        self._thread.join(timeout)

    @property
    def running(self) -> bool:
        return self._thread.is_alive()

    def __enter__(self) -> "Dispatcher":
        if not self._thread.is_alive():
            self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.close()
        self.join()
