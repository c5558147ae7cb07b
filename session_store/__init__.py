"""Live interview session state and its key-value store."""
from .models import DeepDiveTopic, InterviewExchange, SessionState, SessionStatus, now_ms
from .store import (
    KEY_PREFIX,
    InMemorySessionStore,
    RedisSessionStore,
    SessionNotFoundError,
    SessionStore,
    build_session_store,
    session_key,
)

__all__ = [
    "DeepDiveTopic",
    "InterviewExchange",
    "SessionState",
    "SessionStatus",
    "now_ms",
    "KEY_PREFIX",
    "InMemorySessionStore",
    "RedisSessionStore",
    "SessionNotFoundError",
    "SessionStore",
    "build_session_store",
    "session_key",
]
