"""Adaptive goal value objects."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from study_pacer.models.pacing import GoalType, PacingMode, QuestionType, SkillFocus


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class Lesson(_Frozen):
    key_points: tuple[str, ...] = ()
    video_url: str | None = None
    transcript: str | None = None


class PracticeExercise(_Frozen):
    type: str
    instructions: str
    time_limit: int | None = None  # minutes


class Practice(_Frozen):
    exercises: tuple[PracticeExercise, ...] = ()


class AssessmentQuestion(_Frozen):
    question: str
    type: QuestionType = QuestionType.MULTIPLE_CHOICE
    options: tuple[str, ...] = ()
    correct_answer: Any = None


class MicroAssessment(_Frozen):
    questions: tuple[AssessmentQuestion, ...] = Field(default=(), max_length=5)
    time_limit: int = 5  # minutes


class GoalContent(_Frozen):
    lesson: Lesson = Field(default_factory=Lesson)
    practice: Practice = Field(default_factory=Practice)
    micro_assessment: MicroAssessment = Field(default_factory=MicroAssessment)

    @property
    def is_empty(self) -> bool:
        return not (
            self.lesson.key_points
            or self.practice.exercises
            or self.micro_assessment.questions
        )


class AdaptiveGoal(_Frozen):
    """One day's assignment. Never mutated; completion lives on DailyGoalRecord."""

    day_number: int = Field(ge=0)
    week_number: int = Field(ge=0)
    pacing_mode: PacingMode
    goal_type: GoalType
    skill_focus: SkillFocus
    title: str
    description: str
    duration_minutes: int
    difficulty_level: int = Field(ge=1, le=5)
    content: GoalContent = Field(default_factory=GoalContent)

    @property
    def is_recovery(self) -> bool:
        return self.goal_type == GoalType.RECOVERY
