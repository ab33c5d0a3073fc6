"""Storage-agnostic collaborator contracts used by the pacing engine."""

from collections.abc import Sequence
from datetime import date, datetime
from typing import Any, Protocol

from study_pacer.content.question_bank import BankQuestion
from study_pacer.models.pacing import ContentDifficulty, SkillFocus
from study_pacer.models.profile import LearnerProfile, SkillProgress
from study_pacer.models.records import CompletionEntry, DailyGoalRecord, StreakState


class ProfileStore(Protocol):
    def get_profile(self, user_id: str) -> LearnerProfile | None: ...

    def update_profile(self, user_id: str, **changes: Any) -> LearnerProfile: ...


class ProgressStore(Protocol):
    def get_progress(self, user_id: str) -> SkillProgress | None: ...

    def update_progress(self, user_id: str, **changes: Any) -> SkillProgress: ...

    def bump_skill_level(
        self,
        user_id: str,
        skill: SkillFocus,
        candidate: int,
        *,
        expected_version: int,
        goal_id: str | None = None,
    ) -> SkillProgress:
        """Store max(current, candidate) for ``skill``.

        Raises ConcurrencyConflict when the stored version differs from
        ``expected_version``. A ``goal_id`` that was already credited is a no-op.
        """
        ...


class GoalRecordStore(Protocol):
    def get_record(
        self, user_id: str, goal_date: date, recovery: bool = False
    ) -> DailyGoalRecord | None: ...

    def get_record_by_id(self, user_id: str, goal_id: str) -> DailyGoalRecord | None: ...

    def insert_record(self, record: DailyGoalRecord) -> DailyGoalRecord: ...

    def record_completion(
        self,
        user_id: str,
        goal_id: str,
        score: float,
        time_spent_minutes: int,
        completed_at: datetime,
    ) -> DailyGoalRecord: ...

    def mark_gains_applied(self, user_id: str, goal_id: str) -> DailyGoalRecord: ...

    def list_recent_completions(self, user_id: str, limit: int) -> list[CompletionEntry]: ...

    def completion_dates(self, user_id: str, since: date) -> set[date]: ...

    def count_completed(self, user_id: str, include_recovery: bool = False) -> int: ...


class StreakStore(Protocol):
    def get_streak(self, user_id: str) -> StreakState: ...

    def update_streak(
        self,
        user_id: str,
        current: int,
        longest: int,
        last_activity_date: date | None,
    ) -> StreakState: ...


class ContentBank(Protocol):
    def questions_for(
        self,
        skill: SkillFocus,
        difficulty: ContentDifficulty | None = None,
        count: int = 5,
    ) -> Sequence[BankQuestion]: ...
