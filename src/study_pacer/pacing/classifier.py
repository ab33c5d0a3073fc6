"""Pacing-mode classification from the time left before the exam."""

import math
from datetime import date, datetime, time

from study_pacer.models.pacing import PacingMode

INTENSIVE_MAX_DAYS = 45
BALANCED_MAX_DAYS = 90
_SECONDS_PER_DAY = 24 * 60 * 60


def days_remaining(exam_date: date | datetime, now: datetime | None = None) -> int:
    """Whole days until the exam, rounded up.

    A plain date is taken at midnight in the same timezone as ``now``.
    """
    now = now or datetime.now()
    if not isinstance(exam_date, datetime):
        exam_date = datetime.combine(exam_date, time.min, tzinfo=now.tzinfo)
    return math.ceil((exam_date - now).total_seconds() / _SECONDS_PER_DAY)


def classify_pacing_mode(exam_date: date | datetime, now: datetime | None = None) -> PacingMode:
    remaining = days_remaining(exam_date, now)
    if remaining <= INTENSIVE_MAX_DAYS:
        return PacingMode.INTENSIVE
    elif remaining <= BALANCED_MAX_DAYS:
        return PacingMode.BALANCED
    else:
        return PacingMode.STEADY_BUILD
