"""Persisted goal, completion and streak records."""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from study_pacer.models.goal import AdaptiveGoal
from study_pacer.models.pacing import SkillFocus


def make_goal_id(goal_date: date, day_number: int, recovery: bool = False) -> str:
    if recovery:
        return f"recovery-{goal_date.isoformat()}"
    return f"adaptive-{day_number}-{goal_date.isoformat()}"


class DailyGoalRecord(BaseModel):
    """An AdaptiveGoal bound to a user and calendar date."""

    goal_id: str
    user_id: str
    goal_date: date
    goal: AdaptiveGoal
    created_at: datetime = Field(default_factory=datetime.now)
    is_completed: bool = False
    completed_at: datetime | None = None
    score: float | None = Field(default=None, ge=0, le=100)
    time_spent_minutes: int | None = None
    # Set once streak and proficiency have been credited for this completion
    gains_applied: bool = False

    @property
    def is_recovery(self) -> bool:
        return self.goal.is_recovery

    @property
    def skill_focus(self) -> SkillFocus:
        return self.goal.skill_focus


class CompletionEntry(BaseModel):
    """A completed goal as seen by analytics (most recent first when listed)."""

    goal_id: str
    skill_focus: SkillFocus
    score: float | None = None
    time_spent_minutes: int | None = None
    completed_at: datetime
    is_recovery: bool = False


class CompletionSubmission(BaseModel):
    """What the learner submits when finishing a goal."""

    score: float = Field(ge=0, le=100)
    time_spent_minutes: int = Field(ge=0)
    answers: dict[str, Any] = Field(default_factory=dict)


class StreakState(BaseModel):
    current: int = 0
    longest: int = 0
    last_activity_date: date | None = None
