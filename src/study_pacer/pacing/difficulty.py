"""Goal-type progression and numeric difficulty."""

from study_pacer.models.pacing import GoalType, PacingMode
from study_pacer.models.performance import UserPerformance

MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 5

# (max week inclusive, goal type) brackets per pacing mode; last entry is the fallback
GOAL_TYPE_BRACKETS: dict[PacingMode, list[tuple[int | None, GoalType]]] = {
    PacingMode.INTENSIVE: [
        (2, GoalType.INTERMEDIATE),
        (3, GoalType.ADVANCED),
        (None, GoalType.MOCK),
    ],
    PacingMode.BALANCED: [
        (2, GoalType.FOUNDATION),
        (3, GoalType.INTERMEDIATE),
        (None, GoalType.ADVANCED),
    ],
    PacingMode.STEADY_BUILD: [
        (3, GoalType.FOUNDATION),
        (5, GoalType.INTERMEDIATE),
        (None, GoalType.ADVANCED),
    ],
}

BASE_DIFFICULTY: dict[GoalType, int] = {
    GoalType.FOUNDATION: 1,
    GoalType.INTERMEDIATE: 2,
    GoalType.ADVANCED: 3,
    GoalType.MOCK: 4,
    GoalType.RECOVERY: 1,
}


def advise_goal_type(
    week_number: int,
    pacing_mode: PacingMode,
    performance: UserPerformance | None = None,
) -> GoalType:
    """Pick the difficulty tier for a plan week.

    ``performance`` is accepted for future tuning; the current table is
    driven by week and pacing mode only.
    """
    if week_number < 1:
        raise ValueError(f"week_number must be >= 1, got {week_number}")
    if week_number == 1:
        return GoalType.FOUNDATION

    for max_week, goal_type in GOAL_TYPE_BRACKETS[pacing_mode]:
        if max_week is None or week_number <= max_week:
            return goal_type
    raise AssertionError("bracket table has no fallback")


def difficulty_level(goal_type: GoalType, week_number: int, pacing_mode: PacingMode) -> int:
    level = BASE_DIFFICULTY[goal_type]

    if pacing_mode == PacingMode.INTENSIVE:
        level += 1
    elif pacing_mode == PacingMode.STEADY_BUILD:
        level = max(MIN_DIFFICULTY, level - 1)

    level += (week_number - 1) // 2

    return min(MAX_DIFFICULTY, max(MIN_DIFFICULTY, level))
