"""Interview pipeline: resume ingestion, interview start, turns and completion.

Ties the durable interview record (``storage``) to the live session
(``session_store``) and the oracle. The live session is authoritative for an
in-progress interview; the durable record mirrors its transcript after every
turn so the final evaluation survives session expiry.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from flow_manager import FlowLimits, InterviewOrchestrator, TurnResult
from observability import log_event, span
from oracle import EvaluationOracle
from resume_parsing import FALLBACK_NAME
from session_store import SessionState, SessionStore
from storage.interviews import InterviewRecord, complete_interview, get_interview, insert_interview, update_transcript
from storage.resumes import (
    ResumeRecord,
    get_job_description,
    get_resume,
    insert_job_description,
    insert_resume,
    list_resumes as list_resume_records,
)

from services.sessions import get_session_state, initialize_session, terminate_session

DEFAULT_CANDIDATE_NAME = "Candidate"
DEFAULT_ROLE_TITLE = "Untitled Role"
DEFAULT_COMPANY = "Unknown Company"


class InterviewNotFoundError(LookupError):
    pass


class ResumeNotFoundError(LookupError):
    pass


class InterviewCompletedError(RuntimeError):
    pass


class StartedInterview(BaseModel):
    interview_id: str
    job_title: str
    skill_gap_analysis: List[str] = Field(default_factory=list)
    initial_topics: List[str] = Field(default_factory=list)


class CompletedInterview(BaseModel):
    interview_id: str
    status: str
    evaluation: Optional[Dict[str, Any]] = None


class InterviewService:
    def __init__(
        self,
        store: SessionStore,
        oracle: EvaluationOracle,
        *,
        orchestrator: Optional[InterviewOrchestrator] = None,
        limits: Optional[FlowLimits] = None,
    ) -> None:
        self._store = store
        self._oracle = oracle
        self._orchestrator = orchestrator or InterviewOrchestrator(store, oracle, limits=limits)

    def ingest_resume(self, user_id: str, raw_text: str) -> ResumeRecord:
        """Parse and store a resume; parsing failures store a fallback profile."""

        text = " ".join(raw_text.split())
        if not text:
            raise ValueError("Resume text is empty")
        profile = self._oracle.parse_resume(text)
        record = insert_resume(user_id=user_id, raw_text=text, parsed=profile.model_dump())
        log_event("resume_ingested", record.resume_id, outcome="fallback" if profile.error else "parsed")
        return record

    def list_resumes(self, user_id: str) -> List[ResumeRecord]:
        return list_resume_records(user_id)

    def start_interview(
        self,
        user_id: str,
        resume_id: str,
        job_description_text: str,
        *,
        title: Optional[str] = None,
        company: Optional[str] = None,
        candidate_name: Optional[str] = None,
    ) -> StartedInterview:
        if not job_description_text.strip():
            raise ValueError("Job description text is required")
        resume = get_resume(resume_id, user_id)
        if resume is None:
            raise ResumeNotFoundError(resume_id)

        requirements = self._oracle.parse_job_description(job_description_text)
        jd_record = insert_job_description(
            title=title or requirements.title or DEFAULT_ROLE_TITLE,
            company=company or DEFAULT_COMPANY,
            raw_text=job_description_text,
            parsed=requirements.model_dump(),
        )
        skill_gaps = self._oracle.analyze_skill_gap(
            json.dumps(resume.parsed, ensure_ascii=False),
            requirements.model_dump_json(),
        )
        interview = insert_interview(
            user_id=user_id,
            resume_id=resume.resume_id,
            job_description_id=jd_record.job_description_id,
            skill_gap_analysis=skill_gaps,
        )
        state = initialize_session(
            self._store,
            interview.interview_id,
            user_id,
            jd_record.title,
            candidate_name or _resume_name(resume) or DEFAULT_CANDIDATE_NAME,
            skill_gaps,
        )
        return StartedInterview(
            interview_id=interview.interview_id,
            job_title=jd_record.title,
            skill_gap_analysis=skill_gaps,
            initial_topics=list(state.base_skill_gaps),
        )

    def next_question(self, user_id: str, interview_id: str, answer: Optional[str] = None) -> TurnResult:
        """Advance one turn; raises ``SessionNotFoundError`` when the live session is gone."""

        interview = self._require_interview(interview_id, user_id)
        if interview.status == "COMPLETED":
            raise InterviewCompletedError(interview_id)

        result = self._orchestrator.advance_turn(interview_id, answer or None)

        state = get_session_state(self._store, interview_id)
        if state is not None:
            update_transcript(interview_id, [exchange.model_dump() for exchange in state.transcript])

        if result.action == "END_INTERVIEW":
            self.end_interview(user_id, interview_id)
        return result

    def end_interview(self, user_id: str, interview_id: str) -> CompletedInterview:
        """Generate the final evaluation from the durable transcript and close the interview."""

        interview = self._require_interview(interview_id, user_id)
        if interview.status == "COMPLETED":
            terminate_session(self._store, interview_id)
            return CompletedInterview(interview_id=interview_id, status=interview.status, evaluation=interview.evaluation)

        jd_record = get_job_description(interview.job_description_id)
        with span(interview_id, "final_evaluation"):
            report = self._oracle.generate_final_evaluation(
                interview.transcript,
                jd_record.parsed if jd_record is not None else None,
            )
        evaluation = report.model_dump() if report is not None else None
        if evaluation is None:
            log_event("evaluation_missing", interview_id, level=logging.WARNING)
        complete_interview(interview_id, evaluation)
        terminate_session(self._store, interview_id)
        return CompletedInterview(interview_id=interview_id, status="COMPLETED", evaluation=evaluation)

    def session_state(self, user_id: str, interview_id: str) -> Optional[SessionState]:
        self._require_interview(interview_id, user_id)
        return get_session_state(self._store, interview_id)

    def _require_interview(self, interview_id: str, user_id: str) -> InterviewRecord:
        interview = get_interview(interview_id, user_id)
        if interview is None:
            raise InterviewNotFoundError(interview_id)
        return interview


def _resume_name(resume: ResumeRecord) -> str:
    name = str(resume.parsed.get("name") or "").strip()
    if name == FALLBACK_NAME:
        return ""
    return name


__all__ = [
    "CompletedInterview",
    "InterviewCompletedError",
    "InterviewNotFoundError",
    "InterviewService",
    "ResumeNotFoundError",
    "StartedInterview",
]
