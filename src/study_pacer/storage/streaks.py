"""Streak state persistence."""

from datetime import date
from pathlib import Path

from pydantic import ValidationError

from study_pacer.errors import PersistenceError
from study_pacer.models.records import StreakState
from study_pacer.storage.jsonfile import locked, read_json, user_dir, write_json

STREAK_FILENAME = "streak.json"


class JsonStreakStore:
    def __init__(self, root: Path):
        self.root = root

    def _path(self, user_id: str) -> Path:
        return user_dir(self.root, user_id) / STREAK_FILENAME

    def get_streak(self, user_id: str) -> StreakState:
        data = read_json(self._path(user_id))
        if data is None:
            return StreakState()
        try:
            return StreakState(**data)
        except ValidationError as e:
            raise PersistenceError(f"Corrupt streak for {user_id}: {e}", retryable=False) from e

    def update_streak(
        self,
        user_id: str,
        current: int,
        longest: int,
        last_activity_date: date | None,
    ) -> StreakState:
        path = self._path(user_id)
        with locked(path):
            previous = self.get_streak(user_id)
            state = StreakState(
                current=current,
                longest=max(previous.longest, longest, current),
                last_activity_date=last_activity_date,
            )
            write_json(path, state.model_dump(mode="json"))
        return state
