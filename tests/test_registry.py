import threading

import pytest

from asciichat.errors import RegistryInvariantViolation
from asciichat.registry import ClientRegistry, Participant


def make_registry(capacity=8):
    announcements = []
    return ClientRegistry(announcements.append, inbox_capacity=capacity), announcements


def test_register_announces_join_with_count():
    registry, announcements = make_registry()
    alice = registry.register("alice")
    registry.register("bob")
    assert alice.name == "alice"
    assert announcements == ["* alice joined (1 online)", "* bob joined (2 online)"]


def test_register_duplicate_gets_suffix():
    registry, _ = make_registry()
    names = [registry.register("bob").name for _ in range(3)]
    assert names == ["bob", "bob-1", "bob-2"]


def test_concurrent_registration_yields_unique_names():
    registry, _ = make_registry()
    barrier = threading.Barrier(3)
    results = []
    lock = threading.Lock()

    def join():
        barrier.wait()
        p = registry.register("bob")
        with lock:
            results.append(p.name)

    threads = [threading.Thread(target=join) for _ in range(3)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert sorted(results) == ["bob", "bob-1", "bob-2"]
    assert registry.list_names() == ["bob", "bob-1", "bob-2"]


def test_inbox_capacity_is_configured():
    registry, _ = make_registry(capacity=3)
    assert registry.register("a").inbox.capacity == 3


def test_unregister_closes_inbox_and_announces():
    registry, announcements = make_registry()
    alice = registry.register("alice")
    registry.register("bob")
    registry.unregister(alice)
    assert alice.inbox.closed
    assert "alice" not in registry
    assert announcements[-1] == "* alice left (1 online)"


def test_unregister_twice_is_noop():
    registry, announcements = make_registry()
    alice = registry.register("alice")
    registry.unregister(alice)
    registry.unregister(alice)
    assert announcements.count("* alice left (0 online)") == 1
    assert len(registry) == 0


def test_unregister_does_not_remove_newer_holder_of_name():
    registry, _ = make_registry()
    alice = registry.register("alice")
    registry.rename(alice, "zed")
    other = registry.register("alice")
    stale = Participant(name="alice", inbox=alice.inbox)
    registry.unregister(stale)
    assert registry.get("alice") is other


def test_rename_announces_and_keeps_inbox():
    registry, announcements = make_registry()
    alice = registry.register("alice")
    alice.inbox.offer("kept")
    new = registry.rename(alice, "alicia")
    assert new == "alicia"
    assert alice.name == "alicia"
    assert registry.get("alicia") is alice
    assert "alice" not in registry
    assert alice.inbox.snapshot() == ["kept"]
    assert announcements[-1] == "* alice is now known as alicia"


def test_rename_to_taken_name_gets_suffix():
    registry, _ = make_registry()
    registry.register("bob")
    alice = registry.register("alice")
    assert registry.rename(alice, "bob") == "bob-1"
    assert registry.list_names() == ["bob", "bob-1"]


def test_rename_to_own_name_keeps_it():
    registry, _ = make_registry()
    alice = registry.register("alice")
    assert registry.rename(alice, "alice") == "alice"


def test_rename_unregistered_participant_is_noop():
    registry, announcements = make_registry()
    alice = registry.register("alice")
    registry.unregister(alice)
    count = len(announcements)
    assert registry.rename(alice, "ghost") == "alice"
    assert "ghost" not in registry
    assert len(announcements) == count


def test_rename_is_atomic_to_observers():
    registry, _ = make_registry()
    p = registry.register("a")
    stop = threading.Event()
    bad = []

    def observe():
        while not stop.is_set():
            names = registry.list_names()
            if len(names) != 1:
                bad.append(names)

    observer = threading.Thread(target=observe)
    observer.start()
    for i in range(500):
        registry.rename(p, "a" if i % 2 else "b")
    stop.set()
    observer.join()
    assert bad == []


def test_list_names_sorted():
    registry, _ = make_registry()
    for name in ("carol", "alice", "bob"):
        registry.register(name)
    assert registry.list_names() == ["alice", "bob", "carol"]


def test_duplicate_insert_is_invariant_violation():
    registry, _ = make_registry()
    alice = registry.register("alice")
    with pytest.raises(RegistryInvariantViolation):
        registry._insert(Participant(name="alice", inbox=alice.inbox))
