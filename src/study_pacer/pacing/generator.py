"""Adaptive daily-goal generation."""

import math
from datetime import date, datetime

import structlog

from study_pacer.models.goal import AdaptiveGoal
from study_pacer.models.pacing import PacingMode
from study_pacer.models.performance import UserPerformance
from study_pacer.pacing.classifier import classify_pacing_mode
from study_pacer.pacing.content import GoalContentComposer
from study_pacer.pacing.difficulty import advise_goal_type, difficulty_level
from study_pacer.pacing.skill_focus import select_skill_focus

logger = structlog.get_logger()

INTENSIVE_EXTRA_MINUTES = 15
INTENSIVE_MIN_MINUTES = 45
STEADY_BUILD_REDUCTION_MINUTES = 5
STEADY_BUILD_MAX_MINUTES = 25


def week_for_day(day_number: int) -> int:
    return math.ceil(day_number / 7)


def adjust_duration(daily_time_preference_minutes: int, pacing_mode: PacingMode) -> int:
    """Scale the learner's preferred session length to the pacing mode."""
    if pacing_mode == PacingMode.INTENSIVE:
        return max(INTENSIVE_MIN_MINUTES, daily_time_preference_minutes + INTENSIVE_EXTRA_MINUTES)
    elif pacing_mode == PacingMode.STEADY_BUILD:
        return min(
            STEADY_BUILD_MAX_MINUTES,
            daily_time_preference_minutes - STEADY_BUILD_REDUCTION_MINUTES,
        )
    else:
        return daily_time_preference_minutes


class AdaptiveGoalGenerator:
    """Builds one AdaptiveGoal for a plan day.

    Pure given its inputs apart from the content-bank query made by the
    composer.

    Args:
        composer: Content composer for lesson/practice/assessment payloads.
    """

    def __init__(self, composer: GoalContentComposer):
        self.composer = composer

    def generate(
        self,
        day_number: int,
        exam_date: date | datetime,
        performance: UserPerformance,
        daily_time_preference_minutes: int = 30,
        now: datetime | None = None,
    ) -> AdaptiveGoal:
        """Generate the goal for ``day_number``.

        Args:
            day_number: 1-based day in the plan.
            exam_date: Date of the exam.
            performance: Current learner performance.
            daily_time_preference_minutes: Learner's stated daily budget.
            now: Reference time for pacing classification.

        Returns:
            Fully populated adaptive goal.
        """
        if day_number < 1:
            raise ValueError(f"day_number must be >= 1, got {day_number}")

        week_number = week_for_day(day_number)
        pacing_mode = classify_pacing_mode(exam_date, now)
        goal_type = advise_goal_type(week_number, pacing_mode, performance)
        skill_focus = select_skill_focus(performance, week_number, pacing_mode)
        duration = adjust_duration(daily_time_preference_minutes, pacing_mode)
        composed = self.composer.compose(skill_focus, goal_type, week_number)

        goal = AdaptiveGoal(
            day_number=day_number,
            week_number=week_number,
            pacing_mode=pacing_mode,
            goal_type=goal_type,
            skill_focus=skill_focus,
            title=composed.title,
            description=composed.description,
            duration_minutes=duration,
            difficulty_level=difficulty_level(goal_type, week_number, pacing_mode),
            content=composed.content,
        )
        logger.debug(
            "goal_generated",
            day=day_number,
            week=week_number,
            pacing_mode=pacing_mode.value,
            goal_type=goal_type.value,
            skill_focus=skill_focus.value,
            difficulty=goal.difficulty_level,
        )
        return goal
