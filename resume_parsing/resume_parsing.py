from __future__ import annotations  # Structured resume extraction module

import logging
from textwrap import dedent
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from config import LlmRoute
from llm_gateway import LlmGatewayError, call


logger = logging.getLogger(__name__)

PARSE_RESUME_KEY = "resume_parsing.parse_resume"
FALLBACK_NAME = "Unparsed Candidate"
FALLBACK_ERROR = "Parsing failed due to malformed output"


class ResumeExperience(BaseModel):  # Single employment entry
    company: str = ""
    role: str = ""
    duration: str = ""
    description: str = ""

    @field_validator("company", "role", "duration", "description", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return _as_text(value)


class ResumeEducation(BaseModel):  # Single education entry
    institution: str = ""
    degree: str = ""
    year: str = ""

    @field_validator("institution", "degree", "year", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return _as_text(value)


class ResumeProfile(BaseModel):  # Structured resume returned to callers
    name: str = ""
    email: str = ""
    phone: str = ""
    skills: List[str] = Field(default_factory=list)
    experience: List[ResumeExperience] = Field(default_factory=list)
    education: List[ResumeEducation] = Field(default_factory=list)
    error: Optional[str] = None

    @field_validator("name", "email", "phone", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return _as_text(value)

    @field_validator("skills", mode="before")
    @classmethod
    def _coerce_skills(cls, value: Any) -> List[str]:
        if not isinstance(value, list):
            return []
        return [str(item).strip() for item in value if str(item).strip()]

    @field_validator("experience", "education", mode="before")
    @classmethod
    def _coerce_entries(cls, value: Any) -> List[Any]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict)]


def fallback_profile() -> ResumeProfile:  # Placeholder stored when extraction keeps failing
    return ResumeProfile(name=FALLBACK_NAME, error=FALLBACK_ERROR)


def parse_resume(text: str, *, route: LlmRoute) -> ResumeProfile:
    """Extract structured fields from raw resume text.

    Never raises on oracle failure: after the route's retries are exhausted the
    fallback profile (with ``error`` set) is returned so the raw resume can
    still be stored.
    """

    task = _build_task(text)
    try:
        return call(task, ResumeProfile, cfg=route)
    except LlmGatewayError as exc:
        logger.warning("Resume parsing failed, storing fallback profile: %s", exc)
        return fallback_profile()


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _build_task(text: str) -> str:
    return dedent(
        """
        Extract the following information from the provided resume text and return it as a structured JSON object.

        Structure:
        {{
          "name": "full name",
          "email": "email address",
          "phone": "phone number",
          "skills": ["skill1", "skill2"],
          "experience": [
            {{ "company": "", "role": "", "duration": "", "description": "" }}
          ],
          "education": [
            {{ "institution": "", "degree": "", "year": "" }}
          ]
        }}

        Resume Text:
        {text}

        Return only valid JSON without markdown fences, text, or commentary.
        """
    ).strip().format(text=text)
