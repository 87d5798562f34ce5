import asyncio

from core.conversation import SessionStore, StorageConfig
from models.schemas import Turn, TurnRole


def _turn(i):
    role = TurnRole.USER if i % 2 == 0 else TurnRole.ASSISTANT
    return Turn(role=role, content=f"message {i}")


def test_append_and_history_keep_order():
    store = SessionStore()
    for i in range(4):
        store.append("fam-1", _turn(i))
    assert [t.content for t in store.history("fam-1")] == [f"message {i}" for i in range(4)]


def test_history_is_a_copy():
    store = SessionStore()
    store.append("fam-1", _turn(0))
    store.history("fam-1").append(_turn(1))
    assert len(store.history("fam-1")) == 1


def test_unknown_family_is_empty():
    store = SessionStore()
    assert store.history("nobody") == []
    assert store.recent_window("nobody") == []


def test_recent_window_defaults_to_configured_size():
    store = SessionStore(StorageConfig(history_window=10))
    for i in range(12):
        store.append("fam-1", _turn(i))
    window = store.recent_window("fam-1")
    assert len(window) == 10
    assert window[0].content == "message 2"
    assert window[-1].content == "message 11"
    assert [t.content for t in store.recent_window("fam-1", 3)] == ["message 9", "message 10", "message 11"]
    assert store.recent_window("fam-1", 0) == []


def test_families_are_isolated():
    store = SessionStore()
    store.append("fam-1", _turn(0))
    store.append("fam-2", _turn(1))
    assert [t.content for t in store.history("fam-1")] == ["message 0"]
    assert store.session_count() == 2


def test_clear_removes_session():
    store = SessionStore()
    store.append("fam-1", _turn(0))
    store.clear("fam-1")
    assert store.history("fam-1") == []
    assert store.session_count() == 0
    store.clear("fam-1")


def test_lock_is_per_family():
    store = SessionStore()
    assert store.lock("fam-1") is store.lock("fam-1")
    assert store.lock("fam-1") is not store.lock("fam-2")


async def test_clear_keeps_a_held_lock():
    store = SessionStore()
    lock = store.lock("fam-1")
    async with lock:
        store.clear("fam-1")
        assert store.lock("fam-1") is lock


async def test_clear_between_release_and_next_waiter_keeps_lock():
    store = SessionStore()
    lock = store.lock("fam-1")
    await lock.acquire()
    waiter = asyncio.create_task(lock.acquire())
    await asyncio.sleep(0)

    lock.release()
    store.clear("fam-1")

    assert store.lock("fam-1") is lock
    await waiter
    assert lock.locked()
    lock.release()
