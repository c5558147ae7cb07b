import pytest
from redis.exceptions import LockError, LockNotOwnedError

from config.settings import Settings
from session_store import (
    InMemorySessionStore,
    RedisSessionStore,
    SessionState,
    build_session_store,
    session_key,
)


def _state(interview_id: str = "i1") -> SessionState:
    return SessionState(
        interview_id=interview_id,
        user_id="u1",
        job_title="Backend Engineer",
        candidate_name="Ada",
        base_skill_gaps=["A", "B"],
    )


class FakeLock:
    def __init__(self, acquired: bool = True, owned: bool = True) -> None:
        self.acquired = acquired
        self.owned = owned
        self.released = False

    def acquire(self):
        return self.acquired

    def release(self):
        if not self.owned:
            raise LockNotOwnedError("Cannot release a lock that's no longer owned")
        self.released = True


class FakeRedis:
    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.expiry: dict[str, int] = {}
        self.locks: list[tuple[str, float]] = []
        self.next_lock = FakeLock()

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value, ex=None):
        self.data[key] = value
        self.expiry[key] = ex

    def delete(self, key):
        self.data.pop(key, None)

    def lock(self, name, timeout=None, blocking_timeout=None):
        self.locks.append((name, timeout))
        return self.next_lock


def test_memory_store_round_trip() -> None:
    store = InMemorySessionStore()
    state = _state()
    store.create("i1", state)
    assert store.read("i1") == state
    assert store.read("other") is None


def test_memory_store_expires_records() -> None:
    now = [1000.0]
    store = InMemorySessionStore(ttl_seconds=60, clock=lambda: now[0])
    store.create("i1", _state())
    now[0] += 59
    assert store.read("i1") is not None
    now[0] += 1
    assert store.read("i1") is None


def test_memory_store_write_resets_expiry() -> None:
    now = [0.0]
    store = InMemorySessionStore(ttl_seconds=60, clock=lambda: now[0])
    state = _state()
    store.create("i1", state)
    now[0] = 50
    store.write("i1", state)
    now[0] = 100
    assert store.read("i1") is not None


def test_memory_store_delete() -> None:
    store = InMemorySessionStore()
    store.create("i1", _state())
    store.delete("i1")
    store.delete("i1")
    assert store.read("i1") is None


def test_malformed_record_reads_as_missing() -> None:
    store = InMemorySessionStore()
    store._records[session_key("i1")] = ("{not json", float("inf"))
    assert store.read("i1") is None


def test_memory_locks_are_per_interview() -> None:
    store = InMemorySessionStore()
    with store.lock("i1"):
        assert set(store._locks) == {"i1"}
    with store.lock("i1"):
        with store.lock("i2"):
            assert set(store._locks) == {"i1", "i2"}
    assert store._locks == {}


def test_memory_lock_released_on_error() -> None:
    store = InMemorySessionStore()
    with pytest.raises(RuntimeError):
        with store.lock("i1"):
            raise RuntimeError("turn failed")
    assert store._locks == {}
    with store.lock("i1"):
        pass


def test_write_purges_abandoned_sessions() -> None:
    now = [0.0]
    store = InMemorySessionStore(ttl_seconds=60, clock=lambda: now[0])
    for index in range(100):
        store.create(f"old-{index}", _state(f"old-{index}"))
        with store.lock(f"old-{index}"):
            pass
    now[0] = 10000
    store.create("fresh", _state("fresh"))
    assert list(store._records) == [session_key("fresh")]
    assert store._locks == {}


def test_redis_store_uses_expiring_keys() -> None:
    client = FakeRedis()
    store = RedisSessionStore(client=client, ttl_seconds=86400, lock_timeout_s=30)
    store.create("i1", _state())
    assert client.expiry["interview_state:i1"] == 86400
    assert store.read("i1").candidate_name == "Ada"

    client.data["interview_state:i1"] = client.data["interview_state:i1"].encode("utf-8")
    assert store.read("i1").job_title == "Backend Engineer"

    with store.lock("i1"):
        pass
    assert client.locks == [("interview_lock:i1", 30)]
    assert client.next_lock.released

    store.delete("i1")
    assert store.read("i1") is None


def test_redis_lock_expired_before_release_is_logged_not_raised() -> None:
    client = FakeRedis()
    client.next_lock = FakeLock(owned=False)
    store = RedisSessionStore(client=client)
    with store.lock("i1"):
        store.write("i1", _state())
    assert store.read("i1") is not None


def test_redis_lock_acquire_timeout_raises() -> None:
    client = FakeRedis()
    client.next_lock = FakeLock(acquired=False)
    with pytest.raises(LockError):
        with RedisSessionStore(client=client).lock("i1"):
            pass


def test_redis_store_discards_malformed_record() -> None:
    client = FakeRedis()
    client.data["interview_state:i1"] = '{"interview_id": "i1"}'
    assert RedisSessionStore(client=client).read("i1") is None


def test_redis_store_requires_url_or_client() -> None:
    with pytest.raises(ValueError):
        RedisSessionStore()


def test_build_session_store_backends() -> None:
    assert isinstance(build_session_store(Settings(_env_file=None)), InMemorySessionStore)
    redis_store = build_session_store(
        Settings(_env_file=None, SESSION_BACKEND="redis", REDIS_URL="redis://localhost:6379/0")
    )
    assert isinstance(redis_store, RedisSessionStore)
    with pytest.raises(RuntimeError):
        build_session_store(Settings(_env_file=None, SESSION_BACKEND="redis"))
    with pytest.raises(RuntimeError):
        build_session_store(Settings(_env_file=None, SESSION_BACKEND="etcd"))
