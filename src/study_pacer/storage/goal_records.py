"""Daily goal records and completion history persistence."""

from datetime import date, datetime
from pathlib import Path

import structlog
from pydantic import ValidationError

from study_pacer.errors import (
    ConcurrencyConflict,
    GoalAlreadyCompletedError,
    GoalNotFoundError,
    PersistenceError,
)
from study_pacer.models.records import CompletionEntry, DailyGoalRecord
from study_pacer.storage.jsonfile import locked, read_json, user_dir, write_json

logger = structlog.get_logger()

GOALS_FILENAME = "goals.json"


class JsonGoalRecordStore:
    """One ``goals.json`` per user holding every DailyGoalRecord.

    Enforces at most one non-recovery record per calendar date and a single
    transition from incomplete to complete per record.
    """

    def __init__(self, root: Path):
        self.root = root

    def _path(self, user_id: str) -> Path:
        return user_dir(self.root, user_id) / GOALS_FILENAME

    def _load(self, user_id: str) -> list[DailyGoalRecord]:
        data = read_json(self._path(user_id))
        if data is None:
            return []
        try:
            return [DailyGoalRecord(**item) for item in data.get("records", [])]
        except ValidationError as e:
            raise PersistenceError(f"Corrupt goal records for {user_id}: {e}", retryable=False) from e

    def _save(self, user_id: str, records: list[DailyGoalRecord]) -> None:
        write_json(
            self._path(user_id),
            {"records": [r.model_dump(mode="json") for r in records]},
        )

    def get_record(
        self, user_id: str, goal_date: date, recovery: bool = False
    ) -> DailyGoalRecord | None:
        for record in self._load(user_id):
            if record.goal_date == goal_date and record.is_recovery == recovery:
                return record
        return None

    def get_record_by_id(self, user_id: str, goal_id: str) -> DailyGoalRecord | None:
        for record in self._load(user_id):
            if record.goal_id == goal_id:
                return record
        return None

    def insert_record(self, record: DailyGoalRecord) -> DailyGoalRecord:
        with locked(self._path(record.user_id)):
            records = self._load(record.user_id)
            for existing in records:
                same_slot = (
                    existing.goal_date == record.goal_date
                    and existing.is_recovery == record.is_recovery
                )
                if existing.goal_id == record.goal_id or same_slot:
                    raise ConcurrencyConflict(
                        f"A goal for {record.goal_date} already exists ({existing.goal_id})"
                    )
            records.append(record)
            self._save(record.user_id, records)
        logger.info(
            "goal_record_inserted",
            user_id=record.user_id,
            goal_id=record.goal_id,
            goal_date=record.goal_date.isoformat(),
        )
        return record

    def _update(self, user_id: str, goal_id: str, mutate) -> DailyGoalRecord:
        with locked(self._path(user_id)):
            records = self._load(user_id)
            for i, record in enumerate(records):
                if record.goal_id == goal_id:
                    records[i] = mutate(record)
                    self._save(user_id, records)
                    return records[i]
        raise GoalNotFoundError(f"Goal {goal_id} not found for {user_id}")

    def record_completion(
        self,
        user_id: str,
        goal_id: str,
        score: float,
        time_spent_minutes: int,
        completed_at: datetime,
    ) -> DailyGoalRecord:
        def complete(record: DailyGoalRecord) -> DailyGoalRecord:
            if record.is_completed:
                raise GoalAlreadyCompletedError(goal_id)
            return record.model_copy(
                update={
                    "is_completed": True,
                    "completed_at": completed_at,
                    "score": score,
                    "time_spent_minutes": time_spent_minutes,
                }
            )

        return self._update(user_id, goal_id, complete)

    def mark_gains_applied(self, user_id: str, goal_id: str) -> DailyGoalRecord:
        return self._update(
            user_id, goal_id, lambda r: r.model_copy(update={"gains_applied": True})
        )

    def list_recent_completions(self, user_id: str, limit: int) -> list[CompletionEntry]:
        completed = [r for r in self._load(user_id) if r.is_completed and r.completed_at]
        completed.sort(key=lambda r: r.completed_at, reverse=True)
        return [
            CompletionEntry(
                goal_id=r.goal_id,
                skill_focus=r.skill_focus,
                score=r.score,
                time_spent_minutes=r.time_spent_minutes,
                completed_at=r.completed_at,
                is_recovery=r.is_recovery,
            )
            for r in completed[:limit]
        ]

    def completion_dates(self, user_id: str, since: date) -> set[date]:
        return {
            r.completed_at.date()
            for r in self._load(user_id)
            if r.is_completed and r.completed_at and r.completed_at.date() >= since
        }

    def count_completed(self, user_id: str, include_recovery: bool = False) -> int:
        return sum(
            1 for r in self._load(user_id)
            if r.is_completed and (include_recovery or not r.is_recovery)
        )
