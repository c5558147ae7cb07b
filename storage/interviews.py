"""Persistence helpers for interview records (system of record)."""
from __future__ import annotations

import datetime as dt
import json
from typing import Any, Dict, List, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from .sqlite import get_conn

InterviewStatus = Literal["IN_PROGRESS", "COMPLETED"]


class InterviewRecord(BaseModel):
    interview_id: str
    user_id: str
    resume_id: str
    job_description_id: str
    status: InterviewStatus = "IN_PROGRESS"
    skill_gap_analysis: List[str] = Field(default_factory=list)
    transcript: List[Dict[str, Any]] = Field(default_factory=list)
    evaluation: Optional[Dict[str, Any]] = None
    created_at: str
    updated_at: str


_COLUMNS = (
    "interview_id, user_id, resume_id, job_description_id, status, skill_gap_json, "
    "transcript_json, evaluation_json, created_at, updated_at"
)


def insert_interview(
    *,
    user_id: str,
    resume_id: str,
    job_description_id: str,
    skill_gap_analysis: List[str],
) -> InterviewRecord:
    """Create an in-progress interview with an empty transcript."""

    now = _now()
    record = InterviewRecord(
        interview_id=uuid4().hex,
        user_id=user_id,
        resume_id=resume_id,
        job_description_id=job_description_id,
        status="IN_PROGRESS",
        skill_gap_analysis=skill_gap_analysis,
        transcript=[],
        created_at=now,
        updated_at=now,
    )
    with get_conn() as conn:
        conn.execute(
            f"INSERT INTO interviews ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                record.interview_id,
                record.user_id,
                record.resume_id,
                record.job_description_id,
                record.status,
                json.dumps(record.skill_gap_analysis),
                json.dumps(record.transcript),
                None,
                record.created_at,
                record.updated_at,
            ),
        )
    return record


def get_interview(interview_id: str, user_id: Optional[str] = None) -> Optional[InterviewRecord]:
    """Fetch an interview, scoped to ``user_id`` when given."""

    with get_conn() as conn:
        row = conn.execute(f"SELECT {_COLUMNS} FROM interviews WHERE interview_id = ?", (interview_id,)).fetchone()
    if row is None or (user_id is not None and row["user_id"] != user_id):
        return None
    evaluation_raw = row["evaluation_json"]
    return InterviewRecord(
        interview_id=row["interview_id"],
        user_id=row["user_id"],
        resume_id=row["resume_id"],
        job_description_id=row["job_description_id"],
        status=row["status"],
        skill_gap_analysis=json.loads(row["skill_gap_json"] or "[]"),
        transcript=json.loads(row["transcript_json"] or "[]"),
        evaluation=json.loads(evaluation_raw) if evaluation_raw else None,
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def update_transcript(interview_id: str, transcript: List[Dict[str, Any]]) -> None:
    """Mirror the live session transcript into the interview record."""

    with get_conn() as conn:
        conn.execute(
            "UPDATE interviews SET transcript_json = ?, updated_at = ? WHERE interview_id = ?",
            (json.dumps(transcript), _now(), interview_id),
        )


def complete_interview(interview_id: str, evaluation: Optional[Dict[str, Any]]) -> None:
    """Mark the interview completed and store its final evaluation (may be absent)."""

    with get_conn() as conn:
        conn.execute(
            "UPDATE interviews SET status = 'COMPLETED', evaluation_json = ?, updated_at = ? WHERE interview_id = ?",
            (json.dumps(evaluation) if evaluation is not None else None, _now(), interview_id),
        )


def _now() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()
