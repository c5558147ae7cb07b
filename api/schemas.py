"""Pydantic schemas for the interview API."""
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class ResumeReq(BaseModel):
    user_id: str
    text: str


class ResumeResp(BaseModel):
    message: str
    resume_id: str
    parsed: Dict[str, Any] = Field(default_factory=dict)
    created_at: str


class StartReq(BaseModel):
    user_id: str
    resume_id: str
    job_description_text: str
    title: Optional[str] = None
    company: Optional[str] = None
    candidate_name: Optional[str] = None


class StartResp(BaseModel):
    message: str
    interview_id: str
    job_title: str
    skill_gap_analysis: List[str] = Field(default_factory=list)


class NextReq(BaseModel):
    user_id: str
    answer: Optional[str] = None


class NextResp(BaseModel):
    action: Literal["CONTINUE", "END_INTERVIEW"]
    question: Optional[str] = None
    is_follow_up: Optional[bool] = None
    feedback: Optional[str] = None


class EndReq(BaseModel):
    user_id: str


class EndResp(BaseModel):
    message: str
    interview_id: str
    status: str
    evaluation: Optional[Dict[str, Any]] = None
