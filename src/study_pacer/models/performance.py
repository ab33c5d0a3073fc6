"""Learner performance snapshot fed into goal generation."""

from datetime import datetime

from pydantic import BaseModel, Field

from study_pacer.models.pacing import SkillFocus


class ScoreRecord(BaseModel):
    """A single graded completion."""

    skill_focus: SkillFocus
    score: float = Field(ge=0, le=100)
    timestamp: datetime


def default_skill_levels(baseline: int = 50) -> dict[SkillFocus, int]:
    return {skill: baseline for skill in SkillFocus}


class UserPerformance(BaseModel):
    """Derived per request from progress and completions; never persisted."""

    skill_levels: dict[SkillFocus, int] = Field(default_factory=default_skill_levels)
    recent_scores: list[ScoreRecord] = Field(default_factory=list)  # most recent first
    completed_goals: int = 0
    missed_days: int = 0
    average_time_spent: float = 30.0

    def sorted_skills(self) -> list[SkillFocus]:
        """Skills ordered weakest first; equal levels keep enumeration order."""
        order = list(SkillFocus)
        ranked = sorted(self.skill_levels, key=order.index)
        return sorted(ranked, key=lambda skill: self.skill_levels[skill])
