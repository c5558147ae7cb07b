from __future__ import annotations  # Evaluation oracle adapter bundling every LLM-backed operation

from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from config import LlmRoute, load_config, resolve_route
from interview_evaluation import (
    EVALUATE_ANSWER_KEY,
    FINAL_EVALUATION_KEY,
    AnswerEvaluation,
    FinalEvaluation,
    evaluate_answer,
    generate_final_evaluation,
)
from jd_analysis import PARSE_JD_KEY, SKILL_GAP_KEY, JobRequirements, analyze_skill_gap, parse_job_description
from llm_gateway import generate_text
from resume_parsing import PARSE_RESUME_KEY, ResumeProfile, parse_resume

QUESTION_KEY = "flow_manager.generate_question"

ORACLE_KEYS = (
    PARSE_RESUME_KEY,
    PARSE_JD_KEY,
    SKILL_GAP_KEY,
    EVALUATE_ANSWER_KEY,
    QUESTION_KEY,
    FINAL_EVALUATION_KEY,
)


class EvaluationOracle(Protocol):  # Contract consumed by the orchestrator and interview service
    def parse_resume(self, text: str) -> ResumeProfile: ...

    def parse_job_description(self, text: str) -> JobRequirements: ...

    def analyze_skill_gap(self, resume_summary: str, jd_summary: str) -> List[str]: ...

    def evaluate_answer(self, question: str, answer: str, role_context: str) -> AnswerEvaluation: ...

    def generate_question_text(self, prompt: str) -> str: ...

    def generate_final_evaluation(
        self,
        transcript: Sequence[Mapping[str, Any]],
        jd_fields: Optional[Mapping[str, Any]],
    ) -> Optional[FinalEvaluation]: ...


class OracleAdapter:  # Routes each oracle operation to its configured LLM endpoint
    def __init__(self, routes: Mapping[str, LlmRoute]) -> None:
        missing = [key for key in ORACLE_KEYS if key not in routes]
        if missing:
            raise KeyError(f"Oracle routes missing for: {', '.join(missing)}")
        self._routes: Dict[str, LlmRoute] = dict(routes)

    @classmethod
    def from_config(cls, config_path: Path) -> "OracleAdapter":
        cfg = load_config(config_path)
        return cls({key: resolve_route(cfg, key) for key in ORACLE_KEYS})

    def route(self, key: str) -> LlmRoute:
        return self._routes[key]

    def parse_resume(self, text: str) -> ResumeProfile:
        return parse_resume(text, route=self._routes[PARSE_RESUME_KEY])

    def parse_job_description(self, text: str) -> JobRequirements:
        return parse_job_description(text, route=self._routes[PARSE_JD_KEY])

    def analyze_skill_gap(self, resume_summary: str, jd_summary: str) -> List[str]:
        return analyze_skill_gap(resume_summary, jd_summary, route=self._routes[SKILL_GAP_KEY])

    def evaluate_answer(self, question: str, answer: str, role_context: str) -> AnswerEvaluation:
        return evaluate_answer(question, answer, role_context, route=self._routes[EVALUATE_ANSWER_KEY])

    def generate_question_text(self, prompt: str) -> str:
        return generate_text(prompt, cfg=self._routes[QUESTION_KEY])

    def generate_final_evaluation(
        self,
        transcript: Sequence[Mapping[str, Any]],
        jd_fields: Optional[Mapping[str, Any]],
    ) -> Optional[FinalEvaluation]:
        return generate_final_evaluation(transcript, jd_fields, route=self._routes[FINAL_EVALUATION_KEY])
