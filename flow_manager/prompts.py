from __future__ import annotations  # Question generation prompt

import json
import math
from textwrap import dedent

from session_store import SessionState


def build_question_prompt(
    state: SessionState,
    *,
    topic: str,
    is_follow_up: bool,
    elapsed_minutes: float,
    max_follow_ups: int = 2,
    context_exchanges: int = 3,
) -> str:
    history = state.transcript[-context_exchanges:] if context_exchanges > 0 else []
    history_json = json.dumps([exchange.model_dump() for exchange in history], ensure_ascii=False)
    question_kind = "follow-up on the previous answer" if is_follow_up else f"new topic ({topic})"
    return dedent(
        """
        You are an expert technical interviewer hiring for a {job_title} position.
        The candidate is {candidate_name}.

        Interview context:
        - Target topic for this question: {topic}
        - Question type: {question_kind}
        - This is question #{number}
        - Follow-up depth: {depth}/{max_depth}
        - Elapsed time: {elapsed} minutes (target duration is 30 to 60 minutes).

        Previous transcript history (last {window} exchanges):
        {history}

        Generate the exact text you will say next to the candidate.
        If this is a follow-up, probe deeper into their last answer.
        If this is a new topic ({topic}), transition smoothly and ask a challenging question about it.
        Do not include any pleasantries or "Okay I will ask that" text. Just output the question.
        """
    ).strip().format(
        job_title=state.job_title,
        candidate_name=state.candidate_name,
        topic=topic,
        question_kind=question_kind,
        number=state.total_questions_asked + 1,
        depth=state.follow_up_count,
        max_depth=max_follow_ups,
        elapsed=int(math.floor(max(elapsed_minutes, 0.0))),
        window=context_exchanges,
        history=history_json,
    )


__all__ = ["build_question_prompt"]
