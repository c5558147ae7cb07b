"""Persistence helpers for resumes and job descriptions."""
from __future__ import annotations

import datetime as dt
import json
import sqlite3
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from .sqlite import get_conn


class ResumeRecord(BaseModel):
    resume_id: str
    user_id: str
    raw_text: str
    parsed: Dict[str, Any] = Field(default_factory=dict)
    created_at: str


class JobDescriptionRecord(BaseModel):
    job_description_id: str
    title: str
    company: str
    raw_text: str
    parsed: Dict[str, Any] = Field(default_factory=dict)
    created_at: str


def insert_resume(*, user_id: str, raw_text: str, parsed: Dict[str, Any]) -> ResumeRecord:
    """Insert a resume row and return the stored record."""

    record = ResumeRecord(
        resume_id=uuid4().hex,
        user_id=user_id,
        raw_text=raw_text,
        parsed=parsed,
        created_at=_now(),
    )
    with get_conn() as conn:
        conn.execute(
            """INSERT INTO resumes (resume_id, user_id, raw_text, parsed_json, created_at)
               VALUES (?, ?, ?, ?, ?)""",
            (record.resume_id, record.user_id, record.raw_text, json.dumps(record.parsed), record.created_at),
        )
    return record


def get_resume(resume_id: str, user_id: Optional[str] = None) -> Optional[ResumeRecord]:
    with get_conn() as conn:
        row = conn.execute(
            "SELECT resume_id, user_id, raw_text, parsed_json, created_at FROM resumes WHERE resume_id = ?",
            (resume_id,),
        ).fetchone()
    if row is None or (user_id is not None and row["user_id"] != user_id):
        return None
    return _resume_from_row(row)


def list_resumes(user_id: str) -> List[ResumeRecord]:
    """Return a user's resumes, newest first."""

    with get_conn() as conn:
        rows = conn.execute(
            """SELECT resume_id, user_id, raw_text, parsed_json, created_at
               FROM resumes WHERE user_id = ?
               ORDER BY created_at DESC, resume_id DESC""",
            (user_id,),
        ).fetchall()
    return [_resume_from_row(row) for row in rows]


def insert_job_description(*, title: str, company: str, raw_text: str, parsed: Dict[str, Any]) -> JobDescriptionRecord:
    record = JobDescriptionRecord(
        job_description_id=uuid4().hex,
        title=title,
        company=company,
        raw_text=raw_text,
        parsed=parsed,
        created_at=_now(),
    )
    with get_conn() as conn:
        conn.execute(
            """INSERT INTO job_descriptions (job_description_id, title, company, raw_text, parsed_json, created_at)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                record.job_description_id,
                record.title,
                record.company,
                record.raw_text,
                json.dumps(record.parsed),
                record.created_at,
            ),
        )
    return record


def get_job_description(job_description_id: str) -> Optional[JobDescriptionRecord]:
    with get_conn() as conn:
        row = conn.execute(
            """SELECT job_description_id, title, company, raw_text, parsed_json, created_at
               FROM job_descriptions WHERE job_description_id = ?""",
            (job_description_id,),
        ).fetchone()
    if row is None:
        return None
    return JobDescriptionRecord(
        job_description_id=row["job_description_id"],
        title=row["title"],
        company=row["company"],
        raw_text=row["raw_text"],
        parsed=json.loads(row["parsed_json"] or "{}"),
        created_at=row["created_at"],
    )


def _resume_from_row(row: sqlite3.Row) -> ResumeRecord:
    return ResumeRecord(
        resume_id=row["resume_id"],
        user_id=row["user_id"],
        raw_text=row["raw_text"],
        parsed=json.loads(row["parsed_json"] or "{}"),
        created_at=row["created_at"],
    )


def _now() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()
