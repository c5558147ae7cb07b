from __future__ import annotations  # Interview flow turn models

from typing import Literal, Optional

from pydantic import BaseModel, Field

from config.settings import Settings

TurnAction = Literal["CONTINUE", "END_INTERVIEW"]


class FlowLimits(BaseModel):  # Follow-up, question and time limits for one interview
    max_follow_ups: int = Field(default=2, ge=0)
    max_questions: int = Field(default=30, ge=1)
    soft_limit_minutes: float = Field(default=30.0, ge=0.0)
    hard_limit_minutes: float = Field(default=60.0, ge=0.0)
    context_exchanges: int = Field(default=3, ge=0)

    @classmethod
    def from_settings(cls, cfg: Settings) -> "FlowLimits":
        return cls(
            max_follow_ups=cfg.MAX_FOLLOW_UPS,
            max_questions=cfg.MAX_QUESTIONS,
            soft_limit_minutes=cfg.SOFT_LIMIT_MINUTES,
            hard_limit_minutes=cfg.HARD_LIMIT_MINUTES,
            context_exchanges=cfg.CONTEXT_EXCHANGES,
        )


class TurnResult(BaseModel):  # Orchestrator output returned to API callers
    action: TurnAction
    question: Optional[str] = None
    is_follow_up: bool = False
    feedback: Optional[str] = None


__all__ = ["FlowLimits", "TurnAction", "TurnResult"]
