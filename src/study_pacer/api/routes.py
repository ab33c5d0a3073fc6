"""REST API routes for daily goals, recovery and progress analytics."""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from typing import Any

import structlog
from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from study_pacer.config import get_settings
from study_pacer.errors import (
    ConcurrencyConflict,
    ConfigurationError,
    GoalNotFoundError,
    PersistenceError,
)
from study_pacer.lifecycle import DailyGoalLifecycleManager
from study_pacer.models.records import CompletionSubmission
from study_pacer.storage.jsonfile import validate_user_id
from study_pacer.storage.profiles import JsonProfileStore

logger = structlog.get_logger()
router = APIRouter(prefix="/api")


class ProfileUpdate(BaseModel):
    display_name: str | None = None
    target_band: float | None = Field(default=None, ge=1.0, le=9.0)
    exam_date: date | None = None
    daily_study_time_minutes: int | None = Field(default=None, gt=0)


class CompleteGoalRequest(BaseModel):
    goal_id: str | None = None
    score: float = Field(ge=0, le=100)
    time_spent_minutes: int = Field(ge=0)
    answers: dict[str, Any] = Field(default_factory=dict)


class RecoveryRequest(BaseModel):
    missed_days: int | None = Field(default=None, ge=0)


def validate_path_user_id(user_id: str) -> str:
    try:
        return validate_user_id(user_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid user ID format")


def get_lifecycle() -> DailyGoalLifecycleManager:
    return DailyGoalLifecycleManager.from_settings(get_settings())


@contextmanager
def domain_errors(user_id: str) -> Iterator[None]:
    """Translate domain errors into HTTP responses."""
    try:
        yield
    except ConfigurationError as e:
        raise HTTPException(
            status_code=422, detail={"message": str(e), "missing": e.missing}
        )
    except GoalNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConcurrencyConflict as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PersistenceError as e:
        logger.error("request_persistence_failed", user_id=user_id, error=str(e))
        submission = e.submission.model_dump(mode="json") if e.submission else None
        raise HTTPException(
            status_code=503,
            detail={"message": str(e), "retryable": e.retryable, "submission": submission},
        )


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/users/{user_id}/profile")
async def get_profile(user_id: str) -> dict:
    user_id = validate_path_user_id(user_id)
    store = JsonProfileStore(get_settings().users_dir)
    with domain_errors(user_id):
        profile = store.get_profile(user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile.model_dump(mode="json")


@router.put("/users/{user_id}/profile")
async def update_profile(user_id: str, body: ProfileUpdate) -> dict:
    """Create or update a learner's exam setup."""
    user_id = validate_path_user_id(user_id)
    settings = get_settings()
    store = JsonProfileStore(settings.users_dir)
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    with domain_errors(user_id):
        current = store.get_profile(user_id)
        if current is None:
            changes.setdefault("daily_study_time_minutes", settings.default_daily_minutes)
        profile = store.update_profile(user_id, **changes)
        if not profile.onboarding_completed and not profile.missing_setup_fields():
            profile = store.update_profile(user_id, onboarding_completed=True)
    logger.info("profile_updated", user_id=user_id, fields=sorted(changes))
    return profile.model_dump(mode="json")


@router.get("/users/{user_id}/goals/today")
async def get_today_goal(user_id: str) -> dict:
    """Return today's goal, generating it on first request of the day."""
    user_id = validate_path_user_id(user_id)
    manager = get_lifecycle()
    with domain_errors(user_id):
        record = manager.get_today_goal(user_id)
    return record.model_dump(mode="json")


@router.post("/users/{user_id}/goals/complete")
async def complete_goal(user_id: str, body: CompleteGoalRequest) -> dict:
    """Complete today's goal (or ``goal_id``) and credit streak and skill."""
    user_id = validate_path_user_id(user_id)
    manager = get_lifecycle()
    submission = CompletionSubmission(
        score=body.score,
        time_spent_minutes=body.time_spent_minutes,
        answers=body.answers,
    )
    with domain_errors(user_id):
        record = manager.complete_goal(user_id, submission, goal_id=body.goal_id)
    return record.model_dump(mode="json")


@router.post("/users/{user_id}/recovery")
async def start_recovery(user_id: str, body: RecoveryRequest | None = None) -> dict:
    """Start a recovery session for a learner coming back after missed days."""
    user_id = validate_path_user_id(user_id)
    manager = get_lifecycle()
    missed_days = body.missed_days if body is not None else None
    with domain_errors(user_id):
        record = manager.start_recovery_session(user_id, missed_days=missed_days)
    return record.model_dump(mode="json")


@router.get("/users/{user_id}/goals/completed")
async def list_completed_goals(
    user_id: str, limit: int = Query(default=10, ge=1, le=100)
) -> list[dict]:
    user_id = validate_path_user_id(user_id)
    manager = get_lifecycle()
    with domain_errors(user_id):
        completions = manager.recent_completions(user_id, limit)
    return [c.model_dump(mode="json") for c in completions]


@router.get("/users/{user_id}/momentum")
async def get_momentum(user_id: str) -> dict:
    user_id = validate_path_user_id(user_id)
    manager = get_lifecycle()
    with domain_errors(user_id):
        report = manager.momentum(user_id)
    return report.model_dump(mode="json")


@router.get("/users/{user_id}/projection")
async def get_projection(user_id: str) -> dict:
    user_id = validate_path_user_id(user_id)
    manager = get_lifecycle()
    with domain_errors(user_id):
        projection = manager.band_projection(user_id)
    return projection.model_dump(mode="json")


@router.get("/users/{user_id}/engagement")
async def get_engagement(user_id: str) -> dict:
    user_id = validate_path_user_id(user_id)
    manager = get_lifecycle()
    with domain_errors(user_id):
        metrics = manager.engagement(user_id)
    return metrics.model_dump(mode="json")
