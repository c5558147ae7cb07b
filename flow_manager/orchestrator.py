from __future__ import annotations  # Turn-by-turn interview state machine

import logging
from typing import Callable, Optional, Protocol

from interview_evaluation import AnswerEvaluation
from observability import log_event, span
from session_store import DeepDiveTopic, InterviewExchange, SessionNotFoundError, SessionState, SessionStore, now_ms
from .models import FlowLimits, TurnResult
from .prompts import build_question_prompt


logger = logging.getLogger(__name__)

TIME_UP_FEEDBACK = "Time is up. Concluding the interview."
ENOUGH_COVERED_FEEDBACK = "We have covered enough topics today."

END_TIME_LIMIT = "time_limit"
END_COVERAGE = "coverage_complete"
END_QUESTION_CAP = "question_cap"


class TurnOracle(Protocol):  # Subset of the evaluation oracle the orchestrator depends on
    def evaluate_answer(self, question: str, answer: str, role_context: str) -> AnswerEvaluation: ...

    def generate_question_text(self, prompt: str) -> str: ...


class InterviewOrchestrator:
    """Decides, turn by turn, what to ask next and when the interview ends.

    Each ``advance_turn`` is a read-modify-write of the session record done
    under the store's per-session lock, so concurrent turns for the same
    interview are serialized. Different interviews never share state.
    """

    def __init__(
        self,
        store: SessionStore,
        oracle: TurnOracle,
        *,
        limits: Optional[FlowLimits] = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._store = store
        self._oracle = oracle
        self._limits = limits or FlowLimits()
        self._clock = clock

    @property
    def limits(self) -> FlowLimits:
        return self._limits

    def advance_turn(self, interview_id: str, answer: Optional[str] = None) -> TurnResult:
        with self._store.lock(interview_id):
            state = self._store.read(interview_id)
            if state is None:
                raise SessionNotFoundError(interview_id)
            return self._advance(state, answer)

    def _advance(self, state: SessionState, answer: Optional[str]) -> TurnResult:
        last = state.last_exchange()
        if not answer and last is not None and last.is_pending:
            return self._reserve_pending(state, last)

        feedback = ""
        is_follow_up = False
        if answer and last is not None:
            verdict = self._evaluate(state, last, answer)
            feedback = verdict.feedback
            is_follow_up = verdict.requires_follow_up and state.follow_up_count < self._limits.max_follow_ups
            self._store.write(state.interview_id, state)

        target = state.next_unprobed_topic()
        marked = False
        if target is not None:
            topic = target.topic
            if not is_follow_up:
                target.probed = True
                marked = True
        else:
            topic = state.base_skill_gaps[state.current_question_index % len(state.base_skill_gaps)]

        elapsed = state.elapsed_minutes(self._clock())
        reason = self._end_reason(state, elapsed)
        if reason is not None:
            return self._end(state, reason, feedback)

        if marked:
            self._store.write(state.interview_id, state)

        prompt = build_question_prompt(
            state,
            topic=topic,
            is_follow_up=is_follow_up,
            elapsed_minutes=elapsed,
            max_follow_ups=self._limits.max_follow_ups,
            context_exchanges=self._limits.context_exchanges,
        )
        with span(state.interview_id, "generate_question", topic=topic):
            question = self._oracle.generate_question_text(prompt)

        state.transcript.append(InterviewExchange(question=question, answer=""))
        state.total_questions_asked += 1
        if is_follow_up:
            state.follow_up_count += 1
        else:
            state.current_question_index += 1
            state.follow_up_count = 0
        self._store.write(state.interview_id, state)

        log_event(
            "question_asked",
            state.interview_id,
            action="CONTINUE",
            topic=topic,
            follow_up=is_follow_up,
            asked=state.total_questions_asked,
        )
        return TurnResult(
            action="CONTINUE",
            question=question,
            is_follow_up=is_follow_up,
            feedback=feedback or None,
        )

    def _evaluate(self, state: SessionState, last: InterviewExchange, answer: str) -> AnswerEvaluation:
        with span(state.interview_id, "evaluate_answer"):
            verdict = self._oracle.evaluate_answer(last.question, answer, state.job_title)
        last.answer = answer
        last.feedback = verdict.feedback
        if verdict.new_topic:
            state.deep_dive_topics.append(DeepDiveTopic(topic=verdict.new_topic, probed=False))
        log_event(
            "answer_recorded",
            state.interview_id,
            follow_up=verdict.requires_follow_up,
            topic=verdict.new_topic or "",
        )
        return verdict

    def _end_reason(self, state: SessionState, elapsed_minutes: float) -> Optional[str]:
        if elapsed_minutes >= self._limits.hard_limit_minutes:
            return END_TIME_LIMIT
        gaps_covered = state.current_question_index >= len(state.base_skill_gaps)
        dives_covered = state.next_unprobed_topic() is None
        if elapsed_minutes >= self._limits.soft_limit_minutes and gaps_covered and dives_covered:
            return END_COVERAGE
        if state.total_questions_asked >= self._limits.max_questions:
            return END_QUESTION_CAP
        return None

    def _end(self, state: SessionState, reason: str, feedback: str) -> TurnResult:
        default = ENOUGH_COVERED_FEEDBACK if reason == END_QUESTION_CAP else TIME_UP_FEEDBACK
        log_event(
            "interview_end",
            state.interview_id,
            action="END_INTERVIEW",
            reason=reason,
            asked=state.total_questions_asked,
        )
        return TurnResult(action="END_INTERVIEW", feedback=feedback or default)

    def _reserve_pending(self, state: SessionState, pending: InterviewExchange) -> TurnResult:
        # A turn without an answer while a question is outstanding re-serves that question.
        reason = self._end_reason(state, state.elapsed_minutes(self._clock()))
        if reason is not None:
            return self._end(state, reason, "")
        logger.info("Re-serving pending question for interview %s", state.interview_id)
        return TurnResult(
            action="CONTINUE",
            question=pending.question,
            is_follow_up=state.follow_up_count > 0,
        )


__all__ = [
    "ENOUGH_COVERED_FEEDBACK",
    "InterviewOrchestrator",
    "TIME_UP_FEEDBACK",
    "TurnOracle",
]
