from __future__ import annotations  # Job description parsing and skill-gap analysis module

import json
from textwrap import dedent
from typing import Any, List

from pydantic import BaseModel, Field, field_validator

from config import LlmRoute
from llm_gateway import call


PARSE_JD_KEY = "jd_analysis.parse_job_description"
SKILL_GAP_KEY = "jd_analysis.analyze_skill_gap"
SKILL_GAP_TOPICS = 5


class JobRequirements(BaseModel):  # Structured job description
    title: str = ""
    mandatory_skills: List[str] = Field(default_factory=list)
    nice_to_have_skills: List[str] = Field(default_factory=list)
    responsibilities: List[str] = Field(default_factory=list)
    experience_level: str = ""

    @field_validator("title", "experience_level", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()

    @field_validator("mandatory_skills", "nice_to_have_skills", "responsibilities", mode="before")
    @classmethod
    def _coerce_list(cls, value: Any) -> List[str]:
        return _string_list(value)


class SkillGapTopics(BaseModel):  # Weakest topics relative to the role
    topics: List[str] = Field(min_length=SKILL_GAP_TOPICS, max_length=SKILL_GAP_TOPICS)

    @field_validator("topics", mode="before")
    @classmethod
    def _normalize_topics(cls, value: Any) -> List[str]:
        topics = _string_list(value)
        if len(topics) > SKILL_GAP_TOPICS:
            return topics[:SKILL_GAP_TOPICS]
        return topics

    @classmethod
    def from_raw_content(cls, content: str) -> "SkillGapTopics":  # Accept the bare JSON list the prompt asks for
        data = json.loads(content)
        if isinstance(data, list):
            return cls(topics=data)
        raise ValueError("Skill gap reply is neither a list nor a topics object")


def parse_job_description(text: str, *, route: LlmRoute) -> JobRequirements:
    """Extract requirements from a job description.

    Raises ``LlmGatewayError`` once the route's retries are exhausted; there is
    no safe fallback for the rest of the interview pipeline.
    """

    return call(_build_jd_task(text), JobRequirements, cfg=route)


def analyze_skill_gap(resume_summary: str, jd_summary: str, *, route: LlmRoute) -> List[str]:
    """Return exactly five topics the candidate is weakest in for the role."""

    result = call(_build_gap_task(resume_summary, jd_summary), SkillGapTopics, cfg=route)
    return list(result.topics)


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if item is not None and str(item).strip()]


def _build_jd_task(text: str) -> str:
    return dedent(
        """
        Extract the key requirements from the provided job description and return them as a structured JSON object.

        Structure:
        {{
          "title": "Job Title",
          "mandatory_skills": ["skill1", "skill2"],
          "nice_to_have_skills": ["skill3", "skill4"],
          "responsibilities": ["resp1", "resp2"],
          "experience_level": "e.g., Junior, Mid, Senior, 3+ years"
        }}

        Job Description Text:
        {text}

        Return only valid JSON without markdown fences, text, or commentary.
        """
    ).strip().format(text=text)


def _build_gap_task(resume_summary: str, jd_summary: str) -> str:
    return dedent(
        """
        Compare this candidate resume against the job description.
        Identify exactly {count} core technical topics or required skills from the job description that the candidate is WEAKEST in or entirely missing.
        These topics will be used as the interview questions.

        Return only a JSON list of {count} string topics. Example: ["System Design", "Kubernetes", "React Hooks", "PostgreSQL indexing", "OAuth"]

        Resume:
        {resume}

        Job Description:
        {jd}
        """
    ).strip().format(count=SKILL_GAP_TOPICS, resume=resume_summary, jd=jd_summary)
