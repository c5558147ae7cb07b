from config.settings import settings
from services.sessions import get_session_state, initialize_session, terminate_session
from session_store import InMemorySessionStore


def test_initialize_session_round_trips() -> None:
    store = InMemorySessionStore()
    state = initialize_session(store, "i1", "u1", "Backend Engineer", "Ada", ["Go", "Kubernetes"])
    loaded = get_session_state(store, "i1")
    assert loaded == state
    assert loaded.status == "IN_PROGRESS"
    assert loaded.current_question_index == 0
    assert loaded.follow_up_count == 0
    assert loaded.total_questions_asked == 0
    assert loaded.transcript == []
    assert loaded.base_skill_gaps == ["Go", "Kubernetes"]
    assert [(entry.topic, entry.probed) for entry in loaded.deep_dive_topics] == [
        ("Go", False),
        ("Kubernetes", False),
    ]


def test_initialize_session_falls_back_to_default_topics() -> None:
    store = InMemorySessionStore()
    state = initialize_session(store, "i1", "u1", "Backend Engineer", "Ada", ["", "  "])
    assert state.base_skill_gaps == settings.DEFAULT_TOPICS
    assert state.base_skill_gaps == ["General Background", "Technical Fundamentals", "Problem Solving"]


def test_terminate_session_removes_state() -> None:
    store = InMemorySessionStore()
    initialize_session(store, "i1", "u1", "Backend Engineer", "Ada", ["Go"])
    terminate_session(store, "i1")
    assert get_session_state(store, "i1") is None
