"""Key-value session store with per-key expiry.

Each interview's live state is one JSON record under
``interview_state:{interview_id}``. Every write replaces the whole record and
resets its expiry; a missing or expired key reads as ``None``.

Backings:
- ``InMemorySessionStore``: process-local, for development and tests.
- ``RedisSessionStore``: shared across workers, ``SET ... EX`` semantics.
"""
from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from typing import Callable, ContextManager, Dict, Iterator, Optional, Protocol, Tuple

import redis
from pydantic import ValidationError
from redis.exceptions import LockError, LockNotOwnedError

from config.settings import Settings, settings as default_settings

from .models import SessionState

logger = logging.getLogger(__name__)

KEY_PREFIX = "interview_state:"
LOCK_PREFIX = "interview_lock:"


class SessionNotFoundError(LookupError):
    """Raised when an interview has no live session (expired, deleted or never created)."""

    def __init__(self, interview_id: str) -> None:
        super().__init__(f"Interview session not found: {interview_id}")
        self.interview_id = interview_id


def session_key(interview_id: str) -> str:
    return f"{KEY_PREFIX}{interview_id}"


class SessionStore(Protocol):
    def create(self, interview_id: str, state: SessionState) -> None:
        ...

    def read(self, interview_id: str) -> Optional[SessionState]:
        ...

    def write(self, interview_id: str, state: SessionState) -> None:
        ...

    def delete(self, interview_id: str) -> None:
        ...

    def lock(self, interview_id: str) -> ContextManager[None]:
        ...


class InMemorySessionStore:
    def __init__(self, ttl_seconds: int = 86400, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._guard = threading.Lock()
        self._records: Dict[str, Tuple[str, float]] = {}
        self._locks: Dict[str, Tuple[threading.Lock, int]] = {}  # lock and number of holders or waiters

    def create(self, interview_id: str, state: SessionState) -> None:
        self.write(interview_id, state)

    def read(self, interview_id: str) -> Optional[SessionState]:
        key = session_key(interview_id)
        with self._guard:
            record = self._records.get(key)
            if record is None:
                return None
            payload, expires_at = record
            if self._clock() >= expires_at:
                self._records.pop(key, None)
                return None
        return _decode(interview_id, payload)

    def write(self, interview_id: str, state: SessionState) -> None:
        payload = state.model_dump_json()
        with self._guard:
            now = self._clock()
            self._purge_expired(now)
            self._records[session_key(interview_id)] = (payload, now + self._ttl)

    def delete(self, interview_id: str) -> None:
        with self._guard:
            self._records.pop(session_key(interview_id), None)

    @contextmanager
    def lock(self, interview_id: str) -> Iterator[None]:
        with self._guard:
            lock, users = self._locks.get(interview_id, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._locks[interview_id] = (lock, users + 1)
        try:
            with lock:
                yield
        finally:
            with self._guard:
                _, users = self._locks[interview_id]
                if users <= 1:
                    del self._locks[interview_id]
                else:
                    self._locks[interview_id] = (lock, users - 1)

    def _purge_expired(self, now: float) -> None:  # Caller holds _guard
        expired = [key for key, (_, expires_at) in self._records.items() if now >= expires_at]
        for key in expired:
            del self._records[key]
        if expired:
            logger.info("Purged %d expired session record(s)", len(expired))


class RedisSessionStore:
    def __init__(
        self,
        redis_url: str = "",
        *,
        ttl_seconds: int = 86400,
        lock_timeout_s: float = 120.0,
        client: Optional[redis.Redis] = None,
    ) -> None:
        if client is None:
            if not redis_url:
                raise ValueError("RedisSessionStore requires a redis_url or a client")
            client = redis.Redis.from_url(redis_url, decode_responses=True)
        self._redis = client
        self._ttl = ttl_seconds
        self._lock_timeout = lock_timeout_s

    def create(self, interview_id: str, state: SessionState) -> None:
        self.write(interview_id, state)

    def read(self, interview_id: str) -> Optional[SessionState]:
        payload = self._redis.get(session_key(interview_id))
        if payload is None:
            return None
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")
        return _decode(interview_id, payload)

    def write(self, interview_id: str, state: SessionState) -> None:
        self._redis.set(session_key(interview_id), state.model_dump_json(), ex=self._ttl)

    def delete(self, interview_id: str) -> None:
        self._redis.delete(session_key(interview_id))

    @contextmanager
    def lock(self, interview_id: str) -> Iterator[None]:
        lock = self._redis.lock(
            f"{LOCK_PREFIX}{interview_id}",
            timeout=self._lock_timeout,
            blocking_timeout=self._lock_timeout,
        )
        if not lock.acquire():
            raise LockError(f"Timed out waiting for session lock: {interview_id}")
        try:
            yield
        finally:
            try:
                lock.release()
            except LockNotOwnedError:
                # The turn outlived the lock timeout; its writes already landed.
                logger.warning("Session lock for %s expired before release", interview_id)


def _decode(interview_id: str, payload: str) -> Optional[SessionState]:
    try:
        return SessionState.model_validate_json(payload)
    except ValidationError as exc:
        logger.error("Discarding malformed session record for %s: %s", interview_id, exc)
        return None


def build_session_store(cfg: Optional[Settings] = None) -> SessionStore:
    cfg = cfg or default_settings
    backend = cfg.SESSION_BACKEND.strip().lower()
    if backend == "memory":
        return InMemorySessionStore(ttl_seconds=cfg.SESSION_TTL_SECONDS)
    if backend == "redis":
        redis_url = cfg.REDIS_URL.strip()
        if not redis_url:
            raise RuntimeError("SESSION_BACKEND=redis requires REDIS_URL")
        return RedisSessionStore(
            redis_url,
            ttl_seconds=cfg.SESSION_TTL_SECONDS,
            lock_timeout_s=cfg.SESSION_LOCK_TIMEOUT_S,
        )
    raise RuntimeError(f"Unknown SESSION_BACKEND: {cfg.SESSION_BACKEND}")
