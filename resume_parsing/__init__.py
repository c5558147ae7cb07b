from __future__ import annotations  # Re-export resume_parsing public API

from .resume_parsing import (  # noqa: F401
    FALLBACK_NAME,
    PARSE_RESUME_KEY,
    ResumeEducation,
    ResumeExperience,
    ResumeProfile,
    fallback_profile,
    parse_resume,
)

__all__ = [
    "FALLBACK_NAME",
    "PARSE_RESUME_KEY",
    "ResumeEducation",
    "ResumeExperience",
    "ResumeProfile",
    "fallback_profile",
    "parse_resume",
]
