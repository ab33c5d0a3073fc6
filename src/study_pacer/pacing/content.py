"""Goal content assembly from the question bank."""

from dataclasses import dataclass

import structlog

from study_pacer.errors import ContentUnavailableError, PersistenceError
from study_pacer.models.goal import (
    AssessmentQuestion,
    GoalContent,
    Lesson,
    MicroAssessment,
    Practice,
    PracticeExercise,
)
from study_pacer.models.pacing import ContentDifficulty, GoalType, SkillFocus
from study_pacer.storage.base import ContentBank

logger = structlog.get_logger()

ASSESSMENT_TIME_LIMIT = 5
RECOVERY_ASSESSMENT_TIME_LIMIT = 2
PRACTICE_TIME_LIMIT = 15
MAX_ASSESSMENT_QUESTIONS = 3
TITLE_EXCERPT_LENGTH = 50


@dataclass(frozen=True)
class ComposedContent:
    title: str
    description: str
    content: GoalContent


class GoalContentComposer:
    """Builds a goal's lesson, practice and micro-assessment.

    Never raises on content problems: an unreachable or empty bank yields an
    empty but structurally valid payload.

    Args:
        bank: Question source.
        question_count: How many questions to request from the bank.
    """

    def __init__(self, bank: ContentBank, question_count: int = 5):
        self.bank = bank
        self.question_count = question_count

    def compose(
        self,
        skill_focus: SkillFocus,
        goal_type: GoalType,
        week_number: int,
    ) -> ComposedContent:
        difficulty = ContentDifficulty.for_goal_type(goal_type)
        skill = skill_focus.value

        try:
            questions = list(self.bank.questions_for(skill_focus, difficulty, self.question_count))
        except (ContentUnavailableError, PersistenceError, OSError) as e:
            logger.warning(
                "content_bank_unavailable",
                skill=skill,
                difficulty=difficulty.value,
                error=str(e),
            )
            questions = []

        if not questions:
            logger.warning(
                "content_bank_empty",
                skill=skill,
                difficulty=difficulty.value,
                week=week_number,
            )
            return ComposedContent(
                title=f"{skill_focus.label} Practice",
                description=f"Focus on {skill} today.",
                content=GoalContent(),
            )

        first = questions[0]
        excerpt = first.question[:TITLE_EXCERPT_LENGTH]
        description = f"Focus on {skill} with this IELTS-style question. {first.explanation or ''}"

        assessment = MicroAssessment(
            questions=tuple(
                AssessmentQuestion(
                    question=q.question,
                    type=q.type,
                    options=tuple(q.options or ()),
                    correct_answer=q.correct_answer,
                )
                for q in questions[:MAX_ASSESSMENT_QUESTIONS]
            ),
            time_limit=ASSESSMENT_TIME_LIMIT,
        )

        return ComposedContent(
            title=f"{skill_focus.label} Practice - {excerpt}...",
            description=description.strip(),
            content=GoalContent(
                lesson=Lesson(
                    video_url=f"/videos/{skill}-tutorial.mp4",
                    key_points=(
                        f"Understand {skill} question types and strategies",
                        "Practice with authentic IELTS materials",
                        f"Improve your {skill} band score",
                    ),
                ),
                practice=Practice(
                    exercises=(
                        PracticeExercise(
                            type=f"{skill}_practice",
                            instructions=(
                                f"Complete this {skill} exercise based on real IELTS test format"
                            ),
                            time_limit=PRACTICE_TIME_LIMIT,
                        ),
                    )
                ),
                micro_assessment=assessment,
            ),
        )
