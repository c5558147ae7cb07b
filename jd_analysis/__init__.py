from __future__ import annotations  # Re-export jd_analysis public API

from .jd_analysis import (  # noqa: F401 F403
    PARSE_JD_KEY,
    SKILL_GAP_KEY,
    JobRequirements,
    SkillGapTopics,
    analyze_skill_gap,
    parse_job_description,
)

__all__ = [
    "PARSE_JD_KEY",
    "SKILL_GAP_KEY",
    "JobRequirements",
    "SkillGapTopics",
    "analyze_skill_gap",
    "parse_job_description",
]
