"""Skill-focus selection for a day's goal."""

from study_pacer.models.pacing import PacingMode, SkillFocus
from study_pacer.models.performance import UserPerformance

# Recent scores below this count as a failure signal
WEAKNESS_SCORE_THRESHOLD = 70


def select_skill_focus(
    performance: UserPerformance,
    week_number: int,
    pacing_mode: PacingMode,
) -> SkillFocus:
    """Pick the skill today's goal targets.

    Week 1 is always mixed. Weeks 2-3 alternate between the two weakest
    skills. From week 4 the lowest recent score under 70 wins, falling back
    to the weakest skill.

    Args:
        performance: Current learner performance.
        week_number: 1-based plan week.
        pacing_mode: Current pacing mode (not used by the shipped rule).

    Returns:
        Selected skill focus.
    """
    if week_number < 1:
        raise ValueError(f"week_number must be >= 1, got {week_number}")
    if week_number == 1:
        return SkillFocus.MIXED

    ranked = performance.sorted_skills()
    if not ranked:
        raise ValueError("performance.skill_levels is empty")
    weakest = ranked[0]
    second_weakest = ranked[1] if len(ranked) > 1 else weakest

    if week_number <= 3:
        return weakest if week_number % 2 == 0 else second_weakest

    # min() keeps the first of equal scores, i.e. the most recent one
    failures = [r for r in performance.recent_scores if r.score < WEAKNESS_SCORE_THRESHOLD]
    if failures:
        return min(failures, key=lambda r: r.score).skill_focus
    return weakest
