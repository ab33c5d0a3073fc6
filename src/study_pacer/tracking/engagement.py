"""Engagement metrics for the progress dashboard."""

from collections.abc import Sequence
from datetime import date, timedelta

from study_pacer.models.projection import EngagementMetrics
from study_pacer.models.records import CompletionEntry
from study_pacer.tracking.band import improvement_rate


def weekly_consistency(completions: Sequence[CompletionEntry], today: date) -> float:
    """Percentage of the last 7 days with at least one completion."""
    since = today - timedelta(days=6)
    active_days = {c.completed_at.date() for c in completions if c.completed_at.date() >= since}
    return len(active_days) / 7 * 100


def engagement_metrics(
    completions: Sequence[CompletionEntry],
    today: date,
    streak_days: int,
    goals_completed: int | None = None,
) -> EngagementMetrics:
    minutes = [c.time_spent_minutes or 0 for c in completions]
    total_minutes = sum(minutes)

    return EngagementMetrics(
        weekly_consistency=weekly_consistency(completions, today),
        average_session_minutes=total_minutes / len(minutes) if minutes else 0.0,
        total_study_hours=total_minutes / 60,
        goals_completed=len(completions) if goals_completed is None else goals_completed,
        streak_days=streak_days,
        improvement_rate=improvement_rate(
            [c.score if c.score is not None else 50 for c in completions]
        ),
    )
