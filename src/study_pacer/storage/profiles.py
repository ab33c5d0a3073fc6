"""Learner profile and skill progress persistence."""

from datetime import datetime
from pathlib import Path
from statistics import mean
from typing import Any

import structlog
from pydantic import ValidationError

from study_pacer.errors import ConcurrencyConflict, PersistenceError
from study_pacer.models.pacing import SkillFocus
from study_pacer.models.profile import SKILL_LEVEL_FIELDS, LearnerProfile, SkillProgress
from study_pacer.storage.jsonfile import locked, read_json, user_dir, write_json
from study_pacer.tracking.band import onboarding_band

logger = structlog.get_logger()

PROFILE_FILENAME = "profile.json"
PROGRESS_FILENAME = "progress.json"
MAX_CREDITED_GOAL_IDS = 100


class JsonProfileStore:
    def __init__(self, root: Path):
        self.root = root

    def _path(self, user_id: str) -> Path:
        return user_dir(self.root, user_id) / PROFILE_FILENAME

    def get_profile(self, user_id: str) -> LearnerProfile | None:
        data = read_json(self._path(user_id))
        if data is None:
            return None
        try:
            return LearnerProfile(**data)
        except ValidationError as e:
            raise PersistenceError(f"Corrupt profile for {user_id}: {e}", retryable=False) from e

    def save_profile(self, profile: LearnerProfile) -> None:
        path = self._path(profile.user_id)
        profile.updated_at = datetime.now()
        with locked(path):
            write_json(path, profile.model_dump(mode="json"))

    def update_profile(self, user_id: str, **changes: Any) -> LearnerProfile:
        path = self._path(user_id)
        with locked(path):
            current = self.get_profile(user_id) or LearnerProfile(user_id=user_id)
            data = current.model_dump()
            data.update(changes, updated_at=datetime.now())
            profile = LearnerProfile(**data)
            write_json(path, profile.model_dump(mode="json"))
        return profile


class JsonProgressStore:
    """Skill levels with version-checked, monotonic skill bumps.

    Args:
        root: Directory holding one sub-directory per user.
        baseline_level: Level assigned to every skill for a new learner.
    """

    def __init__(self, root: Path, baseline_level: int = 50):
        self.root = root
        self.baseline_level = baseline_level

    def _path(self, user_id: str) -> Path:
        return user_dir(self.root, user_id) / PROGRESS_FILENAME

    def _baseline(self, user_id: str) -> SkillProgress:
        return SkillProgress(
            user_id=user_id,
            **{field: self.baseline_level for field in SKILL_LEVEL_FIELDS.values()},
        )

    def get_progress(self, user_id: str) -> SkillProgress | None:
        data = read_json(self._path(user_id))
        if data is None:
            return None
        try:
            return SkillProgress(**data)
        except ValidationError as e:
            raise PersistenceError(f"Corrupt progress for {user_id}: {e}", retryable=False) from e

    def _write(self, path: Path, progress: SkillProgress) -> SkillProgress:
        progress.version += 1
        progress.updated_at = datetime.now()
        write_json(path, progress.model_dump(mode="json"))
        return progress

    def update_progress(self, user_id: str, **changes: Any) -> SkillProgress:
        path = self._path(user_id)
        with locked(path):
            current = self.get_progress(user_id) or self._baseline(user_id)
            data = current.model_dump()
            data.update(changes)
            return self._write(path, SkillProgress(**data))

    def bump_skill_level(
        self,
        user_id: str,
        skill: SkillFocus,
        candidate: int,
        *,
        expected_version: int,
        goal_id: str | None = None,
    ) -> SkillProgress:
        field = SKILL_LEVEL_FIELDS[skill]
        path = self._path(user_id)
        with locked(path):
            progress = self.get_progress(user_id) or self._baseline(user_id)
            if progress.version != expected_version:
                raise ConcurrencyConflict(
                    f"Progress for {user_id} changed (expected v{expected_version}, "
                    f"found v{progress.version})"
                )
            if goal_id is not None and goal_id in progress.credited_goal_ids:
                logger.info("skill_bump_already_credited", user_id=user_id, goal_id=goal_id)
                return progress

            old = getattr(progress, field)
            setattr(progress, field, max(old, min(100, max(0, candidate))))
            progress.estimated_band = onboarding_band(mean(progress.levels().values()))
            progress.last_assessment_date = datetime.now()
            if goal_id is not None:
                progress.credited_goal_ids = (
                    progress.credited_goal_ids + [goal_id]
                )[-MAX_CREDITED_GOAL_IDS:]
            return self._write(path, progress)
