"""Streak, missed-day and comeback accounting from completion dates."""

import math
from collections.abc import Iterable
from datetime import date, timedelta

from study_pacer.models.projection import MessageTone, MomentumReport, RecoveryAction
from study_pacer.models.records import StreakState

DEFAULT_WINDOW_DAYS = 30
RECOVERY_THRESHOLD = 3


def consecutive_missed_days(
    completion_dates: Iterable[date],
    today: date,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> int:
    """Days without a completion, counted back from yesterday.

    Stops at the first day that has a completion, so this is the length of
    the current gap. Today is still open and never counts as missed; a
    completion today means no gap at all.
    """
    completed = set(completion_dates)
    if today in completed:
        return 0
    missed = 0
    for offset in range(1, window_days + 1):
        if today - timedelta(days=offset) in completed:
            break
        missed += 1
    return missed


def total_missed_days(
    completion_dates: Iterable[date],
    today: date,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> int:
    """All days without a completion in the window. Reporting only."""
    completed = set(completion_dates)
    return sum(
        1 for offset in range(window_days)
        if today - timedelta(days=offset) not in completed
    )


def comeback_streak(completion_dates: Iterable[date]) -> int:
    """Consecutive calendar days with activity, counted from the most recent one."""
    days = sorted(set(completion_dates), reverse=True)
    if not days:
        return 0

    streak = 1
    for newer, older in zip(days, days[1:]):
        if (newer - older).days != 1:
            break
        streak += 1
    return streak


def advance_streak(state: StreakState, today: date) -> StreakState:
    """Streak after a completion on ``today``."""
    yesterday = today - timedelta(days=1)

    if state.last_activity_date == yesterday:
        current = state.current + 1
    elif state.last_activity_date == today:
        current = state.current or 1
    else:
        current = 1

    return StreakState(
        current=current,
        longest=max(state.longest, current),
        last_activity_date=today,
    )


def recovery_action(missed_days: int, threshold: int = RECOVERY_THRESHOLD) -> RecoveryAction:
    if missed_days >= threshold:
        return RecoveryAction.RECOVERY
    elif missed_days > 0:
        return RecoveryAction.NUDGE
    else:
        return RecoveryAction.NONE


def recovery_message(missed_days: int) -> tuple[str, str, MessageTone] | None:
    """Title, body and tone shown to a returning learner."""
    if missed_days <= 0:
        return None
    if missed_days == 1:
        return (
            "One day off? No worries!",
            "Everyone needs a break. Ready to get back on track tomorrow?",
            MessageTone.GENTLE,
        )
    elif missed_days == 2:
        return (
            "Two-day break happens!",
            "Life gets busy. A quick catch-up session will get you back in the flow.",
            MessageTone.GENTLE,
        )
    elif missed_days <= 7:
        return (
            "Welcome back! We missed you.",
            f"It's been {missed_days} days. Don't worry - we've created a special "
            "recovery session to get you back on track.",
            MessageTone.SUPPORTIVE,
        )
    else:
        return (
            "Time for a fresh start!",
            f"It's been {missed_days} days. The best time to restart was yesterday. "
            "The second best time is now.",
            MessageTone.SUPPORTIVE,
        )


def build_momentum_report(
    completion_dates: Iterable[date],
    today: date,
    window_days: int = DEFAULT_WINDOW_DAYS,
    threshold: int = RECOVERY_THRESHOLD,
) -> MomentumReport:
    dates = set(completion_dates)
    missed = consecutive_missed_days(dates, today, window_days)
    total = total_missed_days(dates, today, window_days)
    message = recovery_message(missed)

    return MomentumReport(
        missed_days=missed,
        total_missed_days=total,
        comeback_streak=comeback_streak(dates),
        last_activity_date=max(dates) if dates else None,
        recovery_sessions=math.ceil(total / 3) if total > 0 else 0,
        action=recovery_action(missed, threshold),
        title=message[0] if message else None,
        message=message[1] if message else None,
        tone=message[2] if message else None,
    )
