import logging
import threading

from asciichat.broadcast import Dispatcher
from asciichat.inbox import Inbox
from asciichat.registry import Participant
from tests.conftest import wait_for


def make_participants(n, capacity=4):
    return [Participant(name=f"p{i}", inbox=Inbox(capacity)) for i in range(n)]


def test_deliver_reaches_every_participant():
    participants = make_participants(3)
    dispatcher = Dispatcher(lambda: participants)
    assert dispatcher.deliver("hi") == 3
    assert all(p.inbox.snapshot() == ["hi"] for p in participants)


def test_full_inbox_drops_only_for_that_participant():
    participants = make_participants(3)
    slow = Participant(name="slow", inbox=Inbox(1))
    slow.inbox.offer("old")
    dispatcher = Dispatcher(lambda: [slow, *participants])

    assert dispatcher.deliver("new") == 3
    assert slow.inbox.snapshot() == ["old"]
    assert all(p.inbox.snapshot() == ["new"] for p in participants)


def test_publish_delivers_in_order_through_thread():
    participants = make_participants(2, capacity=16)
    with Dispatcher(lambda: participants) as dispatcher:
        for i in range(5):
            assert dispatcher.publish(f"m{i}")
        wait_for(lambda: all(len(p.inbox) == 5 for p in participants))
    for p in participants:
        assert p.inbox.snapshot() == [f"m{i}" for i in range(5)]


def test_publish_with_full_inbox_does_not_block():
    full = Participant(name="full", inbox=Inbox(1))
    full.inbox.offer("stuck")
    others = make_participants(2)
    with Dispatcher(lambda: [full, *others]) as dispatcher:
        dispatcher.publish("hello")
        wait_for(lambda: all(len(p.inbox) == 1 for p in others))
    assert full.inbox.snapshot() == ["stuck"]
    assert all(p.inbox.snapshot() == ["hello"] for p in others)


def test_close_stops_dispatcher_and_rejects_publish():
    participants = make_participants(1)
    dispatcher = Dispatcher(lambda: participants).start()
    dispatcher.publish("before")
    dispatcher.close()
    dispatcher.join(timeout=5)
    assert not dispatcher.running
    assert participants[0].inbox.snapshot() == ["before"]
    assert dispatcher.publish("after") is False


def test_close_is_idempotent():
    dispatcher = Dispatcher(list).start()
    dispatcher.close()
    dispatcher.close()
    dispatcher.join(timeout=5)
    assert not dispatcher.running


def test_drop_reason_distinguishes_closed_from_full(caplog):
    full = Participant(name="full", inbox=Inbox(1))
    full.inbox.offer("stuck")
    gone = Participant(name="gone", inbox=Inbox(1))
    gone.inbox.close()
    dispatcher = Dispatcher(lambda: [full, gone])
    with caplog.at_level(logging.DEBUG, logger="asciichat.broadcast"):
        assert dispatcher.deliver("hi") == 0
    assert "Inbox full for full" in caplog.text
    assert "Inbox closed for gone" in caplog.text
    assert "Inbox full for gone" not in caplog.text


def test_every_accepted_publish_is_delivered_when_racing_close():
    participant = Participant(name="p", inbox=Inbox(10_000))
    dispatcher = Dispatcher(lambda: [participant], capacity=16).start()
    accepted = []
    started = threading.Event()

    def produce():
        for i in range(5000):
            if dispatcher.publish(f"m{i}"):
                accepted.append(f"m{i}")
            started.set()

    producer = threading.Thread(target=produce)
    producer.start()
    started.wait(timeout=5)
    dispatcher.close()
    producer.join(timeout=10)
    dispatcher.join(timeout=10)
    assert not dispatcher.running
    assert participant.inbox.snapshot() == accepted
