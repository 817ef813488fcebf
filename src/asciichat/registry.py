import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field

from asciichat.errors import RegistryInvariantViolation
from asciichat.inbox import Inbox
from asciichat.names import allocate_name

logger = logging.getLogger(__name__)

JOIN_MESSAGE = "* {name} joined ({count} online)"
LEAVE_MESSAGE = "* {name} left ({count} online)"
RENAME_MESSAGE = "* {old} is now known as {new}"


@dataclass(eq=False)
class Participant:
    name: str
    inbox: Inbox = field(repr=False)


class ClientRegistry:
    """Active participants keyed by unique name.

    One lock guards membership. It is held across name allocation and insertion
    so concurrent registrations never receive the same name, and it is released
    before any announcement is published.
    """

    def __init__(self, announce: Callable[[str], object], inbox_capacity: int = 256):
        self._announce = announce
        self._inbox_capacity = inbox_capacity
        self._clients: dict[str, Participant] = {}
        self._lock = threading.Lock()

    def _insert(self, participant: Participant) -> None:
        if participant.name in self._clients:
            raise RegistryInvariantViolation(f"name already registered: {participant.name!r}")
        self._clients[participant.name] = participant

    def register(self, candidate_name: str) -> Participant:
        with self._lock:
            name = allocate_name(candidate_name, self._clients)
            participant = Participant(name=name, inbox=Inbox(self._inbox_capacity))
            self._insert(participant)
            count = len(self._clients)
        logger.info("%s joined (%d online)", name, count)
        self._announce(JOIN_MESSAGE.format(name=name, count=count))
        return participant

    def unregister(self, participant: Participant) -> None:
        with self._lock:
            if self._clients.get(participant.name) is not participant:
                return
            del self._clients[participant.name]
            count = len(self._clients)
        participant.inbox.close()
        logger.info("%s left (%d online)", participant.name, count)
        self._announce(LEAVE_MESSAGE.format(name=participant.name, count=count))

    def rename(self, participant: Participant, requested_name: str) -> str:
        with self._lock:
            old = participant.name
            if self._clients.get(old) is not participant:
                return old
            del self._clients[old]
            new = allocate_name(requested_name, self._clients)
            participant.name = new
            self._insert(participant)
        logger.info("%s is now known as %s", old, new)
        self._announce(RENAME_MESSAGE.format(old=old, new=new))
        return new

    def list_names(self) -> list[str]:
        with self._lock:
            return sorted(self._clients)

    def snapshot(self) -> list[Participant]:
        with self._lock:
            return list(self._clients.values())

    def get(self, name: str) -> Participant | None:
        with self._lock:
            return self._clients.get(name)

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._clients

    def __len__(self) -> int:
        with self._lock:
            return len(self._clients)
