"""Dashboard analytics models. All of these are derived, never stored."""

from datetime import date
from enum import StrEnum

from pydantic import BaseModel, Field

from study_pacer.models.pacing import SkillFocus


class Trend(StrEnum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class SkillBand(BaseModel):
    skill: SkillFocus
    level: int
    band: float
    trend: Trend = Trend.STABLE
    focus_area: bool = False
    recent_scores: list[float] = Field(default_factory=list)


class BandProjection(BaseModel):
    current: float
    target: float
    projected: float
    confidence: float
    gap: float
    improvement_rate: float
    skills: list[SkillBand] = Field(default_factory=list)


class EngagementMetrics(BaseModel):
    weekly_consistency: float
    average_session_minutes: float
    total_study_hours: float
    goals_completed: int
    streak_days: int
    improvement_rate: float


class RecoveryAction(StrEnum):
    """What the dashboard should offer a returning learner."""

    NONE = "none"
    NUDGE = "nudge"
    RECOVERY = "recovery"


class MessageTone(StrEnum):
    GENTLE = "gentle"
    SUPPORTIVE = "supportive"


class MomentumReport(BaseModel):
    missed_days: int
    total_missed_days: int
    comeback_streak: int
    last_activity_date: date | None = None
    recovery_sessions: int = 0
    action: RecoveryAction = RecoveryAction.NONE
    title: str | None = None
    message: str | None = None
    tone: MessageTone | None = None
