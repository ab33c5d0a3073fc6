"""Learner profile and skill progress models."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from study_pacer.models.pacing import TESTED_SKILLS, SkillFocus


class LearnerProfile(BaseModel):
    user_id: str
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    display_name: str | None = None
    target_band: float | None = Field(default=None, ge=1.0, le=9.0)
    exam_date: date | None = None
    daily_study_time_minutes: int = Field(default=30, gt=0)
    onboarding_completed: bool = False

    def missing_setup_fields(self) -> list[str]:
        missing = []
        if self.target_band is None:
            missing.append("target_band")
        if self.exam_date is None:
            missing.append("exam_date")
        return missing


class SkillProgress(BaseModel):
    """Per-skill proficiency levels (0-100) with an optimistic-concurrency version."""

    user_id: str
    listening: int = Field(default=50, ge=0, le=100)
    reading: int = Field(default=50, ge=0, le=100)
    writing: int = Field(default=50, ge=0, le=100)
    speaking: int = Field(default=50, ge=0, le=100)
    estimated_band: float | None = None  # cached, not authoritative
    last_assessment_date: datetime | None = None
    updated_at: datetime = Field(default_factory=datetime.now)
    version: int = 0
    credited_goal_ids: list[str] = Field(default_factory=list)

    def level_for(self, skill: SkillFocus) -> int:
        return getattr(self, SKILL_LEVEL_FIELDS[skill])

    def levels(self) -> dict[SkillFocus, int]:
        return {skill: self.level_for(skill) for skill in TESTED_SKILLS}


# Explicit skill -> stored field mapping; "mixed" goals do not move any single skill
SKILL_LEVEL_FIELDS: dict[SkillFocus, str] = {
    SkillFocus.LISTENING: "listening",
    SkillFocus.READING: "reading",
    SkillFocus.WRITING: "writing",
    SkillFocus.SPEAKING: "speaking",
}
