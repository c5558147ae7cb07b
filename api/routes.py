"""FastAPI routes for resumes and interview turns."""
from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from api.schemas import EndReq, EndResp, NextReq, NextResp, ResumeReq, ResumeResp, StartReq, StartResp
from config.settings import settings
from flow_manager import FlowLimits
from llm_gateway import LlmGatewayError
from oracle import OracleAdapter
from services.interviews import (
    InterviewCompletedError,
    InterviewNotFoundError,
    InterviewService,
    ResumeNotFoundError,
)
from session_store import SessionNotFoundError, SessionState, build_session_store


logger = logging.getLogger(__name__)

SESSION_EXPIRED_DETAIL = "Interview session expired or malformed. Please start a new interview."
QUESTION_FAILED_DETAIL = "Failed to generate question"

router = APIRouter(prefix="/api")


@lru_cache(maxsize=1)
def get_service() -> InterviewService:
    oracle = OracleAdapter.from_config(Path(settings.APP_CONFIG_PATH))
    return InterviewService(build_session_store(settings), oracle, limits=FlowLimits.from_settings(settings))


def _resume_resp(record, message: str) -> ResumeResp:
    return ResumeResp(
        message=message,
        resume_id=record.resume_id,
        parsed=record.parsed,
        created_at=record.created_at,
    )


@router.post("/resumes", response_model=ResumeResp, status_code=201)
def upload_resume(req: ResumeReq, service: InterviewService = Depends(get_service)) -> ResumeResp:
    try:
        record = service.ingest_resume(req.user_id, req.text)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if record.parsed.get("error"):
        return _resume_resp(record, "Resume saved, but AI parsing failed cleanly")
    return _resume_resp(record, "Resume uploaded and parsed successfully")


@router.get("/resumes/{user_id}", response_model=List[ResumeResp])
def list_resumes(user_id: str, service: InterviewService = Depends(get_service)) -> List[ResumeResp]:
    return [_resume_resp(record, "ok") for record in service.list_resumes(user_id)]


@router.post("/interviews/start", response_model=StartResp, status_code=201)
def start_interview(req: StartReq, service: InterviewService = Depends(get_service)) -> StartResp:
    try:
        started = service.start_interview(
            req.user_id,
            req.resume_id,
            req.job_description_text,
            title=req.title,
            company=req.company,
            candidate_name=req.candidate_name,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ResumeNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Resume not found") from exc
    except LlmGatewayError as exc:
        logger.error("Start interview error: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to initialize interview") from exc
    return StartResp(
        message="Interview initialized successfully",
        interview_id=started.interview_id,
        job_title=started.job_title,
        skill_gap_analysis=started.skill_gap_analysis,
    )


@router.post("/interviews/{interview_id}/next", response_model=NextResp, response_model_exclude_none=True)
def next_question(interview_id: str, req: NextReq, service: InterviewService = Depends(get_service)) -> NextResp:
    try:
        result = service.next_question(req.user_id, interview_id, req.answer)
    except InterviewNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Interview not found") from exc
    except InterviewCompletedError as exc:
        raise HTTPException(status_code=400, detail="Interview already completed") from exc
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=400, detail=SESSION_EXPIRED_DETAIL) from exc
    except LlmGatewayError as exc:
        logger.error("Next question error for %s: %s", interview_id, exc)
        raise HTTPException(status_code=500, detail=QUESTION_FAILED_DETAIL) from exc
    if result.action == "END_INTERVIEW":
        return NextResp(action="END_INTERVIEW", feedback=result.feedback)
    return NextResp(
        action="CONTINUE",
        question=result.question,
        is_follow_up=result.is_follow_up,
        feedback=result.feedback,
    )


@router.post("/interviews/{interview_id}/end", response_model=EndResp)
def end_interview(interview_id: str, req: EndReq, service: InterviewService = Depends(get_service)) -> EndResp:
    try:
        completed = service.end_interview(req.user_id, interview_id)
    except InterviewNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Interview not found") from exc
    return EndResp(
        message="Interview completed",
        interview_id=completed.interview_id,
        status=completed.status,
        evaluation=completed.evaluation,
    )


@router.get("/interviews/{interview_id}/state", response_model=SessionState)
def session_state(
    interview_id: str,
    user_id: str = Query(...),
    service: InterviewService = Depends(get_service),
) -> SessionState:
    try:
        state = service.session_state(user_id, interview_id)
    except InterviewNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Interview not found") from exc
    if state is None:
        raise HTTPException(status_code=404, detail=SESSION_EXPIRED_DETAIL)
    return state
