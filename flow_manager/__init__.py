from __future__ import annotations  # Interview flow orchestration

from .models import FlowLimits, TurnAction, TurnResult
from .orchestrator import ENOUGH_COVERED_FEEDBACK, TIME_UP_FEEDBACK, InterviewOrchestrator, TurnOracle
from .prompts import build_question_prompt

__all__ = [
    "ENOUGH_COVERED_FEEDBACK",
    "FlowLimits",
    "InterviewOrchestrator",
    "TIME_UP_FEEDBACK",
    "TurnAction",
    "TurnOracle",
    "TurnResult",
    "build_question_prompt",
]
