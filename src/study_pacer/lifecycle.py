"""Daily goal lifecycle: generate, present, complete.

States per (user, date): NotGenerated -> Active -> Completed. The manager is
the only component with side effects; everything it delegates to is pure
apart from store and content-bank I/O.
"""

import random
from collections.abc import Callable
from datetime import date, datetime, timedelta
from statistics import mean

import structlog

from study_pacer.config import Settings
from study_pacer.content.question_bank import YamlQuestionBank
from study_pacer.errors import (
    ConcurrencyConflict,
    ConfigurationError,
    GoalAlreadyCompletedError,
    GoalNotFoundError,
    PersistenceError,
)
from study_pacer.models.pacing import PacingMode
from study_pacer.models.performance import ScoreRecord, UserPerformance, default_skill_levels
from study_pacer.models.profile import SKILL_LEVEL_FIELDS, LearnerProfile
from study_pacer.models.projection import BandProjection, EngagementMetrics, MomentumReport
from study_pacer.models.records import (
    CompletionEntry,
    CompletionSubmission,
    DailyGoalRecord,
    make_goal_id,
)
from study_pacer.pacing.classifier import classify_pacing_mode
from study_pacer.pacing.content import GoalContentComposer
from study_pacer.pacing.generator import AdaptiveGoalGenerator
from study_pacer.pacing.recovery import RecoverySessionGenerator, RecoveryType
from study_pacer.storage.base import GoalRecordStore, ProfileStore, ProgressStore, StreakStore
from study_pacer.storage.goal_records import JsonGoalRecordStore
from study_pacer.storage.profiles import JsonProfileStore, JsonProgressStore
from study_pacer.storage.streaks import JsonStreakStore
from study_pacer.tracking.band import BandProjector, round_half_up
from study_pacer.tracking.engagement import engagement_metrics
from study_pacer.tracking.streaks import (
    advance_streak,
    build_momentum_report,
    consecutive_missed_days,
)

logger = structlog.get_logger()

DEFAULT_TARGET_BAND = 7.0
DEFAULT_SESSION_MINUTES = 30.0
MAX_LEVEL_GAIN = 10


def proficiency_gain(score: float) -> int:
    """Level points earned for a completion score (0-100 -> 0-10)."""
    return round_half_up(score / 100 * MAX_LEVEL_GAIN)


def _is_resubmission(record: DailyGoalRecord, submission: CompletionSubmission) -> bool:
    """Whether ``submission`` repeats the completion already stored on ``record``.

    Anything else arriving while gains are still pending lost a race.
    """
    return (
        record.score == submission.score
        and record.time_spent_minutes == submission.time_spent_minutes
    )


class DailyGoalLifecycleManager:
    """Owns today's goal for each learner and applies completions.

    Args:
        profiles: Profile store (target band, exam date, daily minutes).
        progress: Skill-level store with version-checked bumps.
        goals: Goal record / completion store.
        streaks: Streak store.
        generator: Normal-day goal generator.
        recovery_generator: Recovery session generator.
        projector: Band projector for dashboard analytics.
        clock: Source of the current local time.
        history_limit: Completions considered for recent performance.
        baseline_level: Skill level used when no progress record exists.
        missed_days_window: Days scanned back when counting missed days.
        recovery_threshold: Missed days that trigger a recovery prompt.
        max_progress_retries: Optimistic-concurrency retries for skill bumps.
    """

    def __init__(
        self,
        profiles: ProfileStore,
        progress: ProgressStore,
        goals: GoalRecordStore,
        streaks: StreakStore,
        generator: AdaptiveGoalGenerator,
        recovery_generator: RecoverySessionGenerator | None = None,
        projector: BandProjector | None = None,
        *,
        clock: Callable[[], datetime] = datetime.now,
        history_limit: int = 20,
        baseline_level: int = 50,
        missed_days_window: int = 30,
        recovery_threshold: int = 3,
        max_progress_retries: int = 3,
    ):
        self.profiles = profiles
        self.progress = progress
        self.goals = goals
        self.streaks = streaks
        self.generator = generator
        self.recovery_generator = recovery_generator or RecoverySessionGenerator()
        self.projector = projector or BandProjector()
        self.clock = clock
        self.history_limit = history_limit
        self.baseline_level = baseline_level
        self.missed_days_window = missed_days_window
        self.recovery_threshold = recovery_threshold
        self.max_progress_retries = max_progress_retries

    @classmethod
    def from_settings(cls, settings: Settings) -> "DailyGoalLifecycleManager":
        root = settings.users_dir
        bank = YamlQuestionBank(settings.question_bank_file, rng=random.Random(settings.content_seed))
        composer = GoalContentComposer(bank, question_count=settings.content_question_count)
        return cls(
            profiles=JsonProfileStore(root),
            progress=JsonProgressStore(root, baseline_level=settings.baseline_skill_level),
            goals=JsonGoalRecordStore(root),
            streaks=JsonStreakStore(root),
            generator=AdaptiveGoalGenerator(composer),
            projector=BandProjector(lookahead_weeks=settings.projection_lookahead_weeks),
            history_limit=settings.completion_history_limit,
            baseline_level=settings.baseline_skill_level,
            missed_days_window=settings.missed_days_window,
            recovery_threshold=settings.recovery_threshold,
            max_progress_retries=settings.max_progress_retries,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def require_profile(self, user_id: str) -> LearnerProfile:
        profile = self.profiles.get_profile(user_id)
        if profile is None:
            raise ConfigurationError(f"No profile for {user_id}", missing=["profile"])
        missing = profile.missing_setup_fields()
        if missing:
            raise ConfigurationError(
                f"Profile for {user_id} is missing {', '.join(missing)}", missing=missing
            )
        return profile

    def _window_start(self, today: date) -> date:
        return today - timedelta(days=self.missed_days_window)

    def missed_days(self, user_id: str, today: date | None = None) -> int:
        today = today or self.clock().date()
        dates = self.goals.completion_dates(user_id, since=self._window_start(today))
        return consecutive_missed_days(dates, today, self.missed_days_window)

    def _graded_completions(self, user_id: str) -> list[CompletionEntry]:
        """Recent non-recovery completions, most recent first."""
        completions = self.goals.list_recent_completions(user_id, self.history_limit)
        return [c for c in completions if not c.is_recovery]

    def load_performance(self, user_id: str, today: date | None = None) -> UserPerformance:
        """Build the performance snapshot used for goal generation.

        Levels default to the baseline only when no progress record exists;
        a failed read propagates as PersistenceError.
        """
        today = today or self.clock().date()
        levels = default_skill_levels(self.baseline_level)
        progress = self.progress.get_progress(user_id)
        if progress is not None:
            levels.update(progress.levels())

        completions = self._graded_completions(user_id)
        times = [c.time_spent_minutes for c in completions if c.time_spent_minutes is not None]

        return UserPerformance(
            skill_levels=levels,
            recent_scores=[
                ScoreRecord(skill_focus=c.skill_focus, score=c.score, timestamp=c.completed_at)
                for c in completions
                if c.score is not None
            ],
            completed_goals=self.goals.count_completed(user_id),
            missed_days=self.missed_days(user_id, today),
            average_time_spent=mean(times) if times else DEFAULT_SESSION_MINUTES,
        )

    def _todays_record(self, user_id: str, today: date) -> DailyGoalRecord | None:
        recovery = self.goals.get_record(user_id, today, recovery=True)
        if recovery is not None and not recovery.is_completed:
            return recovery
        return self.goals.get_record(user_id, today)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def get_today_goal(self, user_id: str) -> DailyGoalRecord:
        """Return today's goal, generating and persisting it on first request.

        An active recovery session takes precedence. An existing record for
        today, completed or not, is returned unchanged.
        """
        now = self.clock()
        today = now.date()

        existing = self._todays_record(user_id, today)
        if existing is not None:
            logger.debug("goal_reused", user_id=user_id, goal_id=existing.goal_id)
            return existing

        profile = self.require_profile(user_id)
        performance = self.load_performance(user_id, today)
        day_number = performance.completed_goals + 1

        goal = self.generator.generate(
            day_number,
            profile.exam_date,
            performance,
            profile.daily_study_time_minutes,
            now=now,
        )
        record = DailyGoalRecord(
            goal_id=make_goal_id(today, day_number),
            user_id=user_id,
            goal_date=today,
            goal=goal,
            created_at=now,
        )
        try:
            record = self.goals.insert_record(record)
        except ConcurrencyConflict:
            winner = self.goals.get_record(user_id, today)
            if winner is None:
                raise
            logger.info("goal_generation_lost_race", user_id=user_id, goal_id=winner.goal_id)
            return winner

        logger.info(
            "daily_goal_created",
            user_id=user_id,
            goal_id=record.goal_id,
            day=day_number,
            skill_focus=goal.skill_focus.value,
            goal_type=goal.goal_type.value,
            pacing_mode=goal.pacing_mode.value,
        )
        return record

    def start_recovery_session(self, user_id: str, missed_days: int | None = None) -> DailyGoalRecord:
        """Make a recovery session today's goal without consuming a plan day."""
        now = self.clock()
        today = now.date()

        existing = self.goals.get_record(user_id, today, recovery=True)
        if existing is not None:
            return existing

        profile = self.profiles.get_profile(user_id)
        if profile is not None and profile.exam_date is not None:
            pacing_mode = classify_pacing_mode(profile.exam_date, now)
        else:
            pacing_mode = PacingMode.BALANCED

        performance = self.load_performance(user_id, today)
        missed = performance.missed_days if missed_days is None else missed_days
        goal = self.recovery_generator.generate(missed, pacing_mode, performance)
        record = DailyGoalRecord(
            goal_id=make_goal_id(today, goal.day_number, recovery=True),
            user_id=user_id,
            goal_date=today,
            goal=goal,
            created_at=now,
        )
        try:
            record = self.goals.insert_record(record)
        except ConcurrencyConflict:
            winner = self.goals.get_record(user_id, today, recovery=True)
            if winner is None:
                raise
            return winner

        logger.info(
            "recovery_session_started",
            user_id=user_id,
            missed_days=missed,
            recovery_type=RecoveryType.for_missed_days(missed).value,
        )
        return record

    def complete_goal(
        self,
        user_id: str,
        submission: CompletionSubmission,
        goal_id: str | None = None,
    ) -> DailyGoalRecord:
        """Complete a goal and credit streak and proficiency.

        Raises:
            GoalNotFoundError: No matching goal.
            GoalAlreadyCompletedError: The goal was already completed.
            PersistenceError: A write failed; ``submission`` is attached so the
                caller can resubmit unchanged.
        """
        now = self.clock()
        today = now.date()

        if goal_id is not None:
            record = self.goals.get_record_by_id(user_id, goal_id)
        else:
            record = self._todays_record(user_id, today)
        if record is None:
            raise GoalNotFoundError(f"No goal {goal_id or 'for today'} for {user_id}")
        if record.is_completed and (
            record.gains_applied or not _is_resubmission(record, submission)
        ):
            raise GoalAlreadyCompletedError(record.goal_id)

        try:
            if not record.is_completed:
                record = self.goals.record_completion(
                    user_id,
                    record.goal_id,
                    submission.score,
                    submission.time_spent_minutes,
                    now,
                )
            else:
                logger.info("completion_resumed", user_id=user_id, goal_id=record.goal_id)
            self._apply_gains(user_id, record)
            record = self.goals.mark_gains_applied(user_id, record.goal_id)
        except PersistenceError as e:
            logger.error(
                "goal_completion_persist_failed",
                user_id=user_id,
                goal_id=record.goal_id,
                error=str(e),
            )
            raise PersistenceError(str(e), retryable=True, submission=submission) from e

        logger.info(
            "goal_completed",
            user_id=user_id,
            goal_id=record.goal_id,
            score=record.score,
            time_spent_minutes=record.time_spent_minutes,
            recovery=record.is_recovery,
        )
        return record

    def _apply_gains(self, user_id: str, record: DailyGoalRecord) -> None:
        # Credit the day the completion was recorded, not the day of a retry
        streak = advance_streak(self.streaks.get_streak(user_id), record.completed_at.date())
        self.streaks.update_streak(
            user_id, streak.current, streak.longest, streak.last_activity_date
        )

        skill = record.skill_focus
        if skill not in SKILL_LEVEL_FIELDS or record.score is None:
            return
        gain = proficiency_gain(record.score)

        for attempt in range(1, self.max_progress_retries + 1):
            progress = self.progress.get_progress(user_id)
            version = progress.version if progress is not None else 0
            level = progress.level_for(skill) if progress is not None else self.baseline_level
            try:
                self.progress.bump_skill_level(
                    user_id,
                    skill,
                    min(100, level + gain),
                    expected_version=version,
                    goal_id=record.goal_id,
                )
                return
            except ConcurrencyConflict:
                logger.warning(
                    "progress_conflict_retry",
                    user_id=user_id,
                    goal_id=record.goal_id,
                    attempt=attempt,
                )
        raise ConcurrencyConflict(
            f"Could not credit {skill.value} for {record.goal_id} after "
            f"{self.max_progress_retries} attempts"
        )

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------

    def recent_completions(self, user_id: str, limit: int = 10) -> list[CompletionEntry]:
        return self.goals.list_recent_completions(user_id, limit)

    def momentum(self, user_id: str) -> MomentumReport:
        today = self.clock().date()
        dates = self.goals.completion_dates(user_id, since=self._window_start(today))
        return build_momentum_report(
            dates, today, self.missed_days_window, self.recovery_threshold
        )

    def band_projection(self, user_id: str) -> BandProjection:
        profile = self.profiles.get_profile(user_id)
        target = DEFAULT_TARGET_BAND
        if profile is not None and profile.target_band is not None:
            target = profile.target_band

        levels = default_skill_levels(self.baseline_level)
        progress = self.progress.get_progress(user_id)
        if progress is not None:
            levels.update(progress.levels())

        return self.projector.project(
            levels,
            target,
            self._graded_completions(user_id),
            completion_count=self.goals.count_completed(user_id),
        )

    def engagement(self, user_id: str) -> EngagementMetrics:
        return engagement_metrics(
            self._graded_completions(user_id),
            self.clock().date(),
            streak_days=self.streaks.get_streak(user_id).current,
            goals_completed=self.goals.count_completed(user_id),
        )
