"""Recovery sessions for learners returning after missed days."""

from enum import StrEnum

from study_pacer.models.goal import (
    AdaptiveGoal,
    AssessmentQuestion,
    GoalContent,
    Lesson,
    MicroAssessment,
    Practice,
    PracticeExercise,
)
from study_pacer.models.pacing import GoalType, PacingMode, QuestionType, SkillFocus
from study_pacer.models.performance import UserPerformance
from study_pacer.pacing.content import RECOVERY_ASSESSMENT_TIME_LIMIT

RECOVERY_DAY_NUMBER = 0
QUICK_CATCHUP_MAX_MISSED = 2
QUICK_CATCHUP_MINUTES = 20
CONDENSED_SESSION_MINUTES = 30


class RecoveryType(StrEnum):
    QUICK_CATCHUP = "quick_catchup"
    CONDENSED_SESSION = "condensed_session"

    @classmethod
    def for_missed_days(cls, missed_days: int) -> "RecoveryType":
        if missed_days <= QUICK_CATCHUP_MAX_MISSED:
            return cls.QUICK_CATCHUP
        return cls.CONDENSED_SESSION

    @property
    def duration_minutes(self) -> int:
        if self == RecoveryType.QUICK_CATCHUP:
            return QUICK_CATCHUP_MINUTES
        return CONDENSED_SESSION_MINUTES


class RecoverySessionGenerator:
    """Builds the reduced-scope goal offered after missed days."""

    def generate(
        self,
        missed_days: int,
        pacing_mode: PacingMode,
        performance: UserPerformance | None = None,
    ) -> AdaptiveGoal:
        recovery_type = RecoveryType.for_missed_days(missed_days)
        duration = recovery_type.duration_minutes

        return AdaptiveGoal(
            day_number=RECOVERY_DAY_NUMBER,
            week_number=RECOVERY_DAY_NUMBER,
            pacing_mode=pacing_mode,
            goal_type=GoalType.RECOVERY,
            skill_focus=SkillFocus.MIXED,
            title=f"Recovery Session - {missed_days} Days Missed",
            description="Quick catch-up covering the most important concepts from your missed days.",
            duration_minutes=duration,
            difficulty_level=1,
            content=GoalContent(
                lesson=Lesson(
                    key_points=(
                        "Life happens - don't worry about missed days",
                        "Focus on the most critical concepts",
                        "Get back on track with confidence",
                    )
                ),
                practice=Practice(
                    exercises=(
                        PracticeExercise(
                            type="recovery_practice",
                            instructions="Complete these essential exercises to get back on track",
                            time_limit=duration,
                        ),
                    )
                ),
                # Self-report only; not graded for correctness
                micro_assessment=MicroAssessment(
                    questions=(
                        AssessmentQuestion(
                            question="How ready are you to continue your IELTS journey?",
                            type=QuestionType.MULTIPLE_CHOICE,
                            options=("Very ready", "Somewhat ready", "Need more time", "Not sure"),
                            correct_answer=0,
                        ),
                    ),
                    time_limit=RECOVERY_ASSESSMENT_TIME_LIMIT,
                ),
            ),
        )
