"""Tests for the daily goal lifecycle manager."""

from datetime import date, datetime, timedelta

import pytest

from study_pacer.errors import (
    ConcurrencyConflict,
    ConfigurationError,
    GoalAlreadyCompletedError,
    GoalNotFoundError,
    PersistenceError,
)
from study_pacer.lifecycle import DailyGoalLifecycleManager, proficiency_gain
from study_pacer.models.goal import AdaptiveGoal
from study_pacer.models.pacing import GoalType, PacingMode, SkillFocus
from study_pacer.models.projection import RecoveryAction
from study_pacer.models.records import CompletionSubmission, DailyGoalRecord, make_goal_id
from study_pacer.pacing.recovery import RecoverySessionGenerator
from study_pacer.storage.goal_records import JsonGoalRecordStore
from study_pacer.storage.profiles import JsonProfileStore, JsonProgressStore
from study_pacer.storage.streaks import JsonStreakStore

USER = "learner-1"
START = datetime(2026, 6, 1, 9, 0)
EXAM = date(2026, 7, 1)


class Clock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, days: int = 1) -> None:
        self.now += timedelta(days=days)


class FlakyStreakStore(JsonStreakStore):
    """Fails the next ``failures`` streak writes."""

    def __init__(self, root, failures: int = 0):
        super().__init__(root)
        self.failures = failures

    def update_streak(self, user_id, current, longest, last_activity_date):
        if self.failures:
            self.failures -= 1
            raise PersistenceError("disk full")
        return super().update_streak(user_id, current, longest, last_activity_date)


class RacyProgressStore(JsonProgressStore):
    """Simulates another writer bumping progress before our first attempt lands."""

    def __init__(self, root, conflicts: int = 0):
        super().__init__(root)
        self.conflicts = conflicts
        self.attempts = 0

    def bump_skill_level(self, user_id, skill, candidate, *, expected_version, goal_id=None):
        self.attempts += 1
        if self.conflicts:
            self.conflicts -= 1
            raise ConcurrencyConflict("progress changed")
        return super().bump_skill_level(
            user_id, skill, candidate, expected_version=expected_version, goal_id=goal_id
        )


@pytest.fixture
def clock():
    return Clock(START)


@pytest.fixture
def stores(tmp_path):
    return {
        "profiles": JsonProfileStore(tmp_path),
        "progress": RacyProgressStore(tmp_path),
        "goals": JsonGoalRecordStore(tmp_path),
        "streaks": FlakyStreakStore(tmp_path),
    }


@pytest.fixture
def manager(stores, generator, clock):
    stores["profiles"].update_profile(
        USER, target_band=7.0, exam_date=EXAM, daily_study_time_minutes=30
    )
    return DailyGoalLifecycleManager(
        generator=generator,
        recovery_generator=RecoverySessionGenerator(),
        clock=clock,
        **stores,
    )


def submission(score: float = 80, minutes: int = 25) -> CompletionSubmission:
    return CompletionSubmission(score=score, time_spent_minutes=minutes)


def insert_skill_goal(manager, skill: SkillFocus, day: int = 8) -> DailyGoalRecord:
    today = manager.clock().date()
    goal = AdaptiveGoal(
        day_number=day,
        week_number=2,
        pacing_mode=PacingMode.INTENSIVE,
        goal_type=GoalType.INTERMEDIATE,
        skill_focus=skill,
        title=f"{skill.label} Practice",
        description=f"Focus on {skill.value} today.",
        duration_minutes=45,
        difficulty_level=3,
    )
    return manager.goals.insert_record(
        DailyGoalRecord(
            goal_id=make_goal_id(today, day),
            user_id=USER,
            goal_date=today,
            goal=goal,
        )
    )


def test_proficiency_gain():
    assert proficiency_gain(0) == 0
    assert proficiency_gain(80) == 8
    assert proficiency_gain(85) == 9
    assert proficiency_gain(100) == 10


class TestTodayGoal:
    def test_first_goal(self, manager):
        record = manager.get_today_goal(USER)

        assert record.goal_id == "adaptive-1-2026-06-01"
        assert record.goal_date == START.date()
        assert record.goal.pacing_mode == PacingMode.INTENSIVE
        assert record.goal.goal_type == GoalType.FOUNDATION
        assert record.goal.skill_focus == SkillFocus.MIXED
        assert record.goal.duration_minutes == 45
        assert not record.is_completed

    def test_repeated_requests_return_same_record(self, manager):
        first = manager.get_today_goal(USER)
        second = manager.get_today_goal(USER)

        assert first == second
        assert manager.goals.count_completed(USER, include_recovery=True) == 0
        assert len(manager.goals._load(USER)) == 1

    def test_missing_profile(self, stores, generator, clock):
        manager = DailyGoalLifecycleManager(generator=generator, clock=clock, **stores)
        with pytest.raises(ConfigurationError) as exc_info:
            manager.get_today_goal("newcomer")
        assert exc_info.value.missing == ["profile"]

    def test_missing_exam_date(self, manager):
        manager.profiles.update_profile("partial", target_band=6.5)
        with pytest.raises(ConfigurationError) as exc_info:
            manager.get_today_goal("partial")
        assert exc_info.value.missing == ["exam_date"]
        assert manager.goals.get_record("partial", START.date()) is None

    def test_lost_generation_race_returns_winner(self, manager, monkeypatch):
        winner = insert_skill_goal(manager, SkillFocus.READING, day=1)
        calls = iter([None])
        real_get_record = manager.goals.get_record

        def first_read_misses(user_id, goal_date, recovery=False):
            if not recovery and next(calls, "done") is None:
                return None
            return real_get_record(user_id, goal_date, recovery)

        monkeypatch.setattr(manager.goals, "get_record", first_read_misses)
        assert manager.get_today_goal(USER) == winner

    def test_day_number_follows_completed_goals(self, manager, clock):
        manager.get_today_goal(USER)
        manager.complete_goal(USER, submission())
        clock.advance()
        manager.get_today_goal(USER)
        clock.advance()

        # Yesterday's skipped goal does not advance the plan
        assert manager.get_today_goal(USER).goal.day_number == 2


class TestCompletion:
    def test_complete_mixed_goal(self, manager):
        manager.get_today_goal(USER)
        record = manager.complete_goal(USER, submission(score=70, minutes=40))

        assert record.is_completed
        assert record.gains_applied
        assert record.score == 70
        assert record.time_spent_minutes == 40
        assert record.completed_at == START
        assert manager.streaks.get_streak(USER).current == 1
        # Mixed goals credit no single skill
        assert manager.progress.get_progress(USER) is None

    def test_complete_skill_goal_raises_level(self, manager):
        record = insert_skill_goal(manager, SkillFocus.READING)
        manager.complete_goal(USER, submission(score=80), goal_id=record.goal_id)

        progress = manager.progress.get_progress(USER)
        assert progress.reading == 58
        assert progress.listening == 50
        assert record.goal_id in progress.credited_goal_ids

    def test_level_capped_at_hundred(self, manager):
        manager.progress.update_progress(USER, writing=97)
        insert_skill_goal(manager, SkillFocus.WRITING)
        manager.complete_goal(USER, submission(score=100))
        assert manager.progress.get_progress(USER).writing == 100

    def test_second_completion_rejected(self, manager):
        manager.get_today_goal(USER)
        manager.complete_goal(USER, submission())
        with pytest.raises(GoalAlreadyCompletedError):
            manager.complete_goal(USER, submission(score=100))
        assert manager.streaks.get_streak(USER).current == 1

    def test_no_goal_today(self, manager):
        with pytest.raises(GoalNotFoundError):
            manager.complete_goal(USER, submission())

    def test_unknown_goal_id(self, manager):
        with pytest.raises(GoalNotFoundError):
            manager.complete_goal(USER, submission(), goal_id="adaptive-99-2026-06-01")

    def test_streak_grows_on_consecutive_days(self, manager, clock):
        for _ in range(3):
            manager.get_today_goal(USER)
            manager.complete_goal(USER, submission())
            clock.advance()

        streak = manager.streaks.get_streak(USER)
        assert streak.current == 3
        assert streak.longest == 3

    def test_persistence_failure_keeps_submission(self, manager):
        record = insert_skill_goal(manager, SkillFocus.SPEAKING)
        manager.streaks.failures = 1
        sent = submission(score=60)

        with pytest.raises(PersistenceError) as exc_info:
            manager.complete_goal(USER, sent)
        assert exc_info.value.submission == sent
        assert exc_info.value.retryable

        stored = manager.goals.get_record_by_id(USER, record.goal_id)
        assert stored.is_completed
        assert not stored.gains_applied

        resumed = manager.complete_goal(USER, sent)
        assert resumed.gains_applied
        assert manager.streaks.get_streak(USER).current == 1
        assert manager.progress.get_progress(USER).speaking == 56

    def test_conflicting_submission_while_gains_pending(self, manager):
        record = insert_skill_goal(manager, SkillFocus.READING)
        manager.goals.record_completion(USER, record.goal_id, 90, 25, START)

        with pytest.raises(GoalAlreadyCompletedError):
            manager.complete_goal(USER, submission(score=10))

        stored = manager.goals.get_record_by_id(USER, record.goal_id)
        assert stored.score == 90
        assert not stored.gains_applied
        assert manager.progress.get_progress(USER) is None
        assert manager.streaks.get_streak(USER).current == 0

    def test_resumed_completion_credits_original_day(self, manager, clock):
        record = insert_skill_goal(manager, SkillFocus.LISTENING)
        manager.streaks.failures = 1
        sent = submission(score=70)
        with pytest.raises(PersistenceError):
            manager.complete_goal(USER, sent)

        clock.advance()
        manager.complete_goal(USER, sent, goal_id=record.goal_id)

        streak = manager.streaks.get_streak(USER)
        assert streak.last_activity_date == START.date()
        assert streak.current == 1

        manager.get_today_goal(USER)
        manager.complete_goal(USER, submission())
        assert manager.streaks.get_streak(USER).current == 2

    def test_resubmission_does_not_double_credit(self, manager):
        record = insert_skill_goal(manager, SkillFocus.LISTENING)
        manager.complete_goal(USER, submission(score=100))
        with pytest.raises(GoalAlreadyCompletedError):
            manager.complete_goal(USER, submission(score=100), goal_id=record.goal_id)
        assert manager.progress.get_progress(USER).listening == 60

    def test_progress_conflict_is_retried(self, manager):
        insert_skill_goal(manager, SkillFocus.READING)
        manager.progress.conflicts = 2
        manager.complete_goal(USER, submission(score=50))

        assert manager.progress.attempts == 3
        assert manager.progress.get_progress(USER).reading == 55

    def test_progress_conflict_exhausts_retries(self, manager):
        insert_skill_goal(manager, SkillFocus.READING)
        manager.progress.conflicts = 3
        with pytest.raises(ConcurrencyConflict):
            manager.complete_goal(USER, submission(score=50))


class TestRecovery:
    def complete_days_ago(self, manager, clock, days):
        clock.advance(-days)
        manager.get_today_goal(USER)
        manager.complete_goal(USER, submission())
        clock.advance(days)

    def test_missed_days_and_momentum(self, manager, clock):
        self.complete_days_ago(manager, clock, 4)

        assert manager.missed_days(USER) == 3
        report = manager.momentum(USER)
        assert report.missed_days == 3
        assert report.action == RecoveryAction.RECOVERY
        assert report.comeback_streak == 1

    def test_completion_yesterday_needs_no_recovery(self, manager, clock):
        self.complete_days_ago(manager, clock, 1)

        assert manager.missed_days(USER) == 0
        assert manager.momentum(USER).action == RecoveryAction.NONE

    def test_recovery_session_for_three_missed_days(self, manager, clock):
        self.complete_days_ago(manager, clock, 4)
        record = manager.start_recovery_session(USER)

        assert record.is_recovery
        assert record.goal_id == "recovery-2026-06-01"
        assert record.goal.duration_minutes == 30
        assert record.goal.pacing_mode == PacingMode.INTENSIVE
        assert manager.get_today_goal(USER) == record

    def test_explicit_missed_days(self, manager):
        record = manager.start_recovery_session(USER, missed_days=2)
        assert record.goal.duration_minutes == 20
        assert record.goal.title == "Recovery Session - 2 Days Missed"

    def test_recovery_without_exam_date_defaults_to_balanced(self, manager):
        manager.profiles.update_profile("no-exam", target_band=6.0)
        record = manager.start_recovery_session("no-exam", missed_days=4)
        assert record.goal.pacing_mode == PacingMode.BALANCED

    def test_recovery_does_not_consume_a_plan_day(self, manager, clock):
        self.complete_days_ago(manager, clock, 4)
        manager.start_recovery_session(USER)
        done = manager.complete_goal(USER, submission(score=100))
        assert done.is_recovery

        normal = manager.get_today_goal(USER)
        assert not normal.is_recovery
        assert normal.goal.day_number == 2
        assert manager.progress.get_progress(USER) is None
        assert manager.missed_days(USER) == 0


class TestAnalytics:
    def test_load_performance_defaults(self, manager):
        performance = manager.load_performance(USER)
        assert performance.skill_levels[SkillFocus.WRITING] == 50
        assert performance.skill_levels[SkillFocus.MIXED] == 50
        assert performance.completed_goals == 0
        assert performance.missed_days == 30
        assert performance.average_time_spent == 30

    def test_load_performance_uses_progress_and_history(self, manager):
        record = insert_skill_goal(manager, SkillFocus.WRITING)
        manager.complete_goal(USER, submission(score=40, minutes=20), goal_id=record.goal_id)

        performance = manager.load_performance(USER)
        assert performance.skill_levels[SkillFocus.WRITING] == 54
        assert performance.completed_goals == 1
        assert performance.missed_days == 0
        assert performance.average_time_spent == 20
        assert [s.score for s in performance.recent_scores] == [40]

    def test_band_projection(self, manager):
        record = insert_skill_goal(manager, SkillFocus.READING)
        manager.complete_goal(USER, submission(score=100), goal_id=record.goal_id)

        projection = manager.band_projection(USER)
        assert projection.target == 7.0
        assert projection.confidence == 5
        assert projection.current == 9.0

    def test_engagement(self, manager):
        manager.get_today_goal(USER)
        manager.complete_goal(USER, submission(minutes=30))

        metrics = manager.engagement(USER)
        assert metrics.goals_completed == 1
        assert metrics.streak_days == 1
        assert metrics.total_study_hours == 0.5

    def test_recent_completions(self, manager):
        manager.get_today_goal(USER)
        manager.complete_goal(USER, submission())
        completions = manager.recent_completions(USER)
        assert [c.goal_id for c in completions] == ["adaptive-1-2026-06-01"]
