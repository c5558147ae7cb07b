from __future__ import annotations  # Live interview session state models

import time
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

SessionStatus = Literal["IN_PROGRESS", "COMPLETED"]


def now_ms() -> int:
    return int(time.time() * 1000)


class DeepDiveTopic(BaseModel):  # Topic queued for probing, in discovery order
    topic: str
    probed: bool = False


class InterviewExchange(BaseModel):  # One question with its answer once given
    question: str
    answer: str = ""
    feedback: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.answer == ""


class SessionState(BaseModel):  # Mutable orchestration record for one in-progress interview
    interview_id: str
    user_id: str
    status: SessionStatus = "IN_PROGRESS"

    current_question_index: int = Field(default=0, ge=0)
    follow_up_count: int = Field(default=0, ge=0)
    total_questions_asked: int = Field(default=0, ge=0)
    start_time: int = Field(default_factory=now_ms)  # epoch milliseconds

    deep_dive_topics: List[DeepDiveTopic] = Field(default_factory=list)
    transcript: List[InterviewExchange] = Field(default_factory=list)

    job_title: str
    candidate_name: str
    base_skill_gaps: List[str] = Field(min_length=1)

    def elapsed_minutes(self, at_ms: Optional[int] = None) -> float:
        current = now_ms() if at_ms is None else at_ms
        return (current - self.start_time) / 60000

    def last_exchange(self) -> Optional[InterviewExchange]:
        return self.transcript[-1] if self.transcript else None

    def next_unprobed_topic(self) -> Optional[DeepDiveTopic]:
        for entry in self.deep_dive_topics:
            if not entry.probed:
                return entry
        return None


__all__ = ["DeepDiveTopic", "InterviewExchange", "SessionState", "SessionStatus", "now_ms"]
