"""Helpers for creating, reading and tearing down live interview sessions."""
from __future__ import annotations

from typing import Optional, Sequence

from config.settings import settings
from observability import log_event
from session_store import DeepDiveTopic, SessionState, SessionStore


def initialize_session(
    store: SessionStore,
    interview_id: str,
    user_id: str,
    job_title: str,
    candidate_name: str,
    initial_topics: Sequence[str],
) -> SessionState:
    """Create the initial session state for ``interview_id`` and store it.

    Every initial topic becomes both an unprobed deep-dive topic and a base
    skill gap. When no usable topic is given the configured default topics
    are used instead.
    """

    topics = [str(topic).strip() for topic in initial_topics if str(topic).strip()]
    if not topics:
        topics = list(settings.DEFAULT_TOPICS)
    state = SessionState(
        interview_id=interview_id,
        user_id=user_id,
        status="IN_PROGRESS",
        current_question_index=0,
        follow_up_count=0,
        total_questions_asked=0,
        deep_dive_topics=[DeepDiveTopic(topic=topic, probed=False) for topic in topics],
        transcript=[],
        job_title=job_title,
        candidate_name=candidate_name,
        base_skill_gaps=topics,
    )
    store.create(interview_id, state)
    log_event("session_started", interview_id, topic=", ".join(topics))
    return state


def get_session_state(store: SessionStore, interview_id: str) -> Optional[SessionState]:
    """Return the live state for ``interview_id`` or ``None`` when it is gone."""

    return store.read(interview_id)


def terminate_session(store: SessionStore, interview_id: str) -> None:
    store.delete(interview_id)
    log_event("session_terminated", interview_id)


__all__ = ["get_session_state", "initialize_session", "terminate_session"]
