from __future__ import annotations  # Per-answer and end-of-interview evaluation module

import json
import logging
from textwrap import dedent
from typing import Any, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field, field_validator

from config import LlmRoute
from llm_gateway import LlmGatewayError, call


logger = logging.getLogger(__name__)

EVALUATE_ANSWER_KEY = "interview_evaluation.evaluate_answer"
FINAL_EVALUATION_KEY = "interview_evaluation.generate_final_evaluation"
NEUTRAL_FEEDBACK = "Answer recorded."


class AnswerEvaluation(BaseModel):  # Quick verdict on a single answer
    feedback: str = ""
    requires_follow_up: bool = False
    new_topic: Optional[str] = None

    @field_validator("feedback", mode="before")
    @classmethod
    def _coerce_feedback(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()

    @field_validator("requires_follow_up", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in {"true", "yes", "1"}
        return bool(value)

    @field_validator("new_topic", mode="before")
    @classmethod
    def _blank_topic_is_none(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text or None


class FinalEvaluation(BaseModel):  # Report written to the interview record at completion
    overall_score: float = Field(ge=0.0, le=100.0)
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    detailed_feedback: str = ""

    @field_validator("strengths", "weaknesses", mode="before")
    @classmethod
    def _coerce_list(cls, value: Any) -> List[str]:
        if not isinstance(value, list):
            return []
        return [str(item).strip() for item in value if str(item).strip()]


def neutral_evaluation() -> AnswerEvaluation:
    return AnswerEvaluation(feedback=NEUTRAL_FEEDBACK, requires_follow_up=False)


def evaluate_answer(question: str, answer: str, role_context: str, *, route: LlmRoute) -> AnswerEvaluation:
    """Score a single answer without retrying.

    Any oracle failure becomes the neutral evaluation so a turn is never
    blocked by the evaluator.
    """

    task = _build_answer_task(question, answer, role_context)
    try:
        return call(task, AnswerEvaluation, cfg=route, max_retries=0)
    except LlmGatewayError as exc:
        logger.warning("Answer evaluation failed, using neutral feedback: %s", exc)
        return neutral_evaluation()


def generate_final_evaluation(
    transcript: Sequence[Mapping[str, Any]],
    jd_fields: Optional[Mapping[str, Any]],
    *,
    route: LlmRoute,
) -> Optional[FinalEvaluation]:  # Returns None instead of raising so completion is never blocked
    task = _build_final_task(transcript, jd_fields)
    try:
        return call(task, FinalEvaluation, cfg=route, max_retries=0)
    except LlmGatewayError as exc:
        logger.error("Final evaluation generation failed: %s", exc)
        return None


def _build_answer_task(question: str, answer: str, role_context: str) -> str:
    return dedent(
        """
        You are a senior technical interviewer for a {role} position.
        Evaluate the candidate's answer to this question:

        Question: "{question}"
        Candidate's Answer: "{answer}"

        Return your evaluation exactly as this JSON structure:
        {{
          "feedback": "A very brief 1-sentence note on the quality of their answer.",
          "requires_follow_up": true or false (true if the answer was shallow or missed the core concept),
          "new_topic": "One highly specific missing concept to drill into, or an empty string if answered perfectly"
        }}
        """
    ).strip().format(role=role_context, question=question, answer=answer)


def _build_final_task(transcript: Sequence[Mapping[str, Any]], jd_fields: Optional[Mapping[str, Any]]) -> str:
    return dedent(
        """
        You are an expert technical interviewer evaluating a full candidate interview.
        Review the transcript of questions and answers against the job requirements.

        Generate a comprehensive feedback report.

        Return only valid JSON:
        {{
          "overall_score": 85,
          "strengths": ["string", "string"],
          "weaknesses": ["string", "string"],
          "detailed_feedback": "A paragraph highlighting interview performance."
        }}

        Job description requirements:
        {jd}

        Interview transcript:
        {transcript}
        """
    ).strip().format(
        jd=json.dumps(dict(jd_fields or {}), ensure_ascii=False),
        transcript=json.dumps([dict(item) for item in transcript], ensure_ascii=False),
    )
