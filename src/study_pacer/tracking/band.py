"""Band-score estimation and projection.

Two conversions from a 0-100 skill level exist and are kept separate:
the onboarding estimate rounds to the nearest half band within 4.0-8.0,
while the dashboard uses an unrounded linear scale clamped to 4.0-9.0.
"""

import math
from collections.abc import Sequence
from statistics import mean

from study_pacer.models.pacing import TESTED_SKILLS, SkillFocus
from study_pacer.models.projection import BandProjection, SkillBand, Trend
from study_pacer.models.records import CompletionEntry

MIN_BAND = 4.0
MAX_BAND = 9.0
ONBOARDING_MAX_BAND = 8.0
DEFAULT_IMPROVEMENT_RATE = 0.1
IMPROVEMENT_WINDOW = 5
DEFAULT_LOOKAHEAD_WEEKS = 4
MAX_CONFIDENCE = 95
CONFIDENCE_PER_COMPLETION = 5
FOCUS_AREA_LEVEL = 60
TREND_WINDOW = 3
TREND_MARGIN = 5


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (not banker's rounding)."""
    return math.floor(value + 0.5)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def dashboard_skill_band(level: float) -> float:
    """Live dashboard band for a skill level: level / 10 + 4.5, clamped to 4.0-9.0."""
    return _clamp(level / 10 + 4.5, MIN_BAND, MAX_BAND)


def onboarding_band(level: float) -> float:
    """Onboarding estimate: level / 100 * 4 + 4, rounded to the nearest 0.5."""
    band = round_half_up((level / 100 * 4 + 4) * 2) / 2
    return _clamp(band, MIN_BAND, ONBOARDING_MAX_BAND)


def improvement_rate(scores: Sequence[float]) -> float:
    """Band change per week from recent scores (most recent first).

    Compares the last 5 scores against the 5 before them; 0.1 when there
    are fewer than 10 samples.
    """
    if len(scores) < IMPROVEMENT_WINDOW * 2:
        return DEFAULT_IMPROVEMENT_RATE
    recent = scores[:IMPROVEMENT_WINDOW]
    earlier = scores[IMPROVEMENT_WINDOW:IMPROVEMENT_WINDOW * 2]
    return (mean(recent) - mean(earlier)) / 100


def skill_trend(scores: Sequence[float]) -> Trend:
    """Trend of a skill's scores (most recent first)."""
    if len(scores) < 2:
        return Trend.STABLE
    recent = scores[:TREND_WINDOW]
    previous = scores[TREND_WINDOW:TREND_WINDOW * 2]
    recent_avg = mean(recent)
    previous_avg = mean(previous) if previous else recent_avg

    if recent_avg > previous_avg + TREND_MARGIN:
        return Trend.UP
    elif recent_avg < previous_avg - TREND_MARGIN:
        return Trend.DOWN
    return Trend.STABLE


class BandProjector:
    """Converts skill levels and completion history into a band projection.

    Args:
        lookahead_weeks: Horizon for the projected band.
    """

    def __init__(self, lookahead_weeks: int = DEFAULT_LOOKAHEAD_WEEKS):
        self.lookahead_weeks = lookahead_weeks

    def project(
        self,
        levels: dict[SkillFocus, int],
        target_band: float,
        completions: Sequence[CompletionEntry],
        completion_count: int | None = None,
    ) -> BandProjection:
        """Build the projection.

        Args:
            levels: Proficiency level per tested skill (0-100).
            target_band: Learner's target band from the profile.
            completions: Recent completions, most recent first.
            completion_count: Total completions; defaults to len(completions).

        Returns:
            Current, projected and target band with per-skill detail.
        """
        count = len(completions) if completion_count is None else completion_count
        skills = [self._skill_band(skill, levels[skill], completions) for skill in TESTED_SKILLS]

        current = mean(s.band for s in skills)
        # Ungraded completions count as 50
        rate = improvement_rate([c.score if c.score is not None else 50 for c in completions])
        projected = min(MAX_BAND, current + rate * self.lookahead_weeks)

        return BandProjection(
            current=current,
            target=target_band,
            projected=projected,
            confidence=min(MAX_CONFIDENCE, count * CONFIDENCE_PER_COMPLETION),
            gap=target_band - current,
            improvement_rate=rate,
            skills=skills,
        )

    @staticmethod
    def _skill_band(
        skill: SkillFocus,
        level: int,
        completions: Sequence[CompletionEntry],
    ) -> SkillBand:
        scores = [c.score for c in completions if c.skill_focus == skill and c.score is not None]
        return SkillBand(
            skill=skill,
            level=level,
            band=dashboard_skill_band(level),
            trend=skill_trend(scores),
            focus_area=level < FOCUS_AREA_LEVEL,
            recent_scores=scores[:IMPROVEMENT_WINDOW],
        )
