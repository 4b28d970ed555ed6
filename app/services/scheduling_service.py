"""
Lesson scheduling service
Decides when each lesson of a track unlocks and how far along a learner is
"""
import logging
import math
from datetime import datetime, timedelta
from typing import Optional

from app.schemas.track import ScheduleConfig, EnrollmentState, AvailabilityResult
from app.utils.timeutils import utc_now, ensure_utc, start_of_day, js_weekday

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round like the dashboard client does (0.5 goes up)"""
    return int(math.floor(value + 0.5))


class SchedulingService:
    """
    Service for lesson availability and track progress

    Schedule types, checked after the allow-all override:
    - flexible: everything open
    - fixed_dates: the [start, end] window is split into equal slots, one per lesson
    - duration_based: lessons_per_week lessons unlock each week from enrollment
    - weekly_schedule: one lesson per scheduled weekday from enrollment

    Anything missing or unrecognised opens the lesson rather than blocking the learner.
    """

    FLEXIBLE = "flexible"
    FIXED_DATES = "fixed_dates"
    DURATION_BASED = "duration_based"
    WEEKLY_SCHEDULE = "weekly_schedule"

    SCHEDULE_TYPES = (FLEXIBLE, FIXED_DATES, DURATION_BASED, WEEKLY_SCHEDULE)

    def calculate_lesson_availability(
        self,
        lesson_index: int,
        total_lessons: int,
        config: ScheduleConfig,
        progress: EnrollmentState,
        now: Optional[datetime] = None
    ) -> AvailabilityResult:
        """
        Decide whether the lesson at a position is open yet

        Args:
            lesson_index: 0-based position in the track
            total_lessons: Number of lessons in the track
            config: Track scheduling fields
            progress: Learner enrollment state
            now: Evaluation instant (defaults to current UTC time)

        Returns:
            AvailabilityResult with the unlock date and a reason
        """
        now = ensure_utc(now) or utc_now()
        lesson_index = max(lesson_index, 0)

        if config.allow_all_lessons_immediately:
            return self._open(now, "immediate access")

        schedule_type = config.schedule_type or self.FLEXIBLE

        if schedule_type == self.FLEXIBLE:
            return self._open(now, "flexible schedule")

        if total_lessons <= 0:
            return self._open(now, "no lessons scheduled")

        if schedule_type == self.FIXED_DATES:
            unlock = self._fixed_dates_unlock(lesson_index, total_lessons, config)
        elif schedule_type == self.DURATION_BASED:
            unlock = self._duration_based_unlock(lesson_index, total_lessons, config, progress)
        elif schedule_type == self.WEEKLY_SCHEDULE:
            unlock = self._weekly_schedule_unlock(lesson_index, config, progress)
        else:
            logger.warning(f"Unknown schedule type '{schedule_type}', treating as flexible")
            return self._open(now, "flexible schedule")

        if unlock is None:
            return self._open(now, "schedule incomplete")

        if now >= unlock:
            return AvailabilityResult(
                available=True,
                available_date=unlock,
                reason=f"available since {unlock:%Y-%m-%d}"
            )

        return AvailabilityResult(
            available=False,
            available_date=unlock,
            reason=f"available on {unlock:%Y-%m-%d}"
        )

    def calculate_track_progress(
        self,
        completed_count: int,
        total_lessons: int,
        config: Optional[ScheduleConfig] = None,
        progress: Optional[EnrollmentState] = None
    ) -> int:
        """
        Completion percentage (0-100) for a track

        Scheduling config and enrollment are accepted for call-site symmetry;
        they do not weight the result.
        """
        if total_lessons <= 0:
            return 0

        percentage = round_half_up(completed_count / total_lessons * 100)
        return min(max(percentage, 0), 100)

    def format_available_date(self, date: datetime, now: Optional[datetime] = None) -> str:
        """Human label for when a locked lesson opens"""
        now = ensure_utc(now) or utc_now()
        days = (start_of_day(date) - start_of_day(now)).days

        if days <= 0:
            return "Available today"
        if days == 1:
            return "Available tomorrow"
        if days < 7:
            return f"Available in {days} days"
        return f"Available on {ensure_utc(date):%a, %d %b %Y}"

    def _open(self, now: datetime, reason: str) -> AvailabilityResult:
        return AvailabilityResult(available=True, available_date=now, reason=reason)

    def _fixed_dates_unlock(
        self,
        lesson_index: int,
        total_lessons: int,
        config: ScheduleConfig
    ) -> Optional[datetime]:
        """
        Slot start inside the fixed window

        Logic:
        - slot_start = start + (end - start) * index / total
        - end before start collapses every slot onto start
        """
        if config.start_date is None or config.end_date is None:
            return None

        window = config.end_date - config.start_date
        if window < timedelta(0):
            window = timedelta(0)

        return config.start_date + window * lesson_index / total_lessons

    def _duration_based_unlock(
        self,
        lesson_index: int,
        total_lessons: int,
        config: ScheduleConfig,
        progress: EnrollmentState
    ) -> Optional[datetime]:
        """
        Weekly batches counted from enrollment

        Logic:
        - lesson k belongs to week ceil((k + 1) / per_week), week 1 starting at enrollment
        - pacing falls back to ceil(total / duration_weeks) when lessons_per_week is unset
        """
        per_week = config.lessons_per_week

        if per_week is None:
            if not config.duration_weeks or config.duration_weeks <= 0:
                return None
            per_week = math.ceil(total_lessons / config.duration_weeks)

        per_week = max(per_week, 1)
        week_number = math.ceil((lesson_index + 1) / per_week)

        return progress.enrolled_at + timedelta(weeks=week_number - 1)

    def _weekly_schedule_unlock(
        self,
        lesson_index: int,
        config: ScheduleConfig,
        progress: EnrollmentState
    ) -> Optional[datetime]:
        """
        Nth scheduled weekday on or after the enrollment day

        Logic:
        - schedule_days uses 0 = Sunday
        - lessons past the duration window unlock at the window end
        """
        days = sorted({d for d in (config.schedule_days or []) if 0 <= d <= 6})
        if not days:
            return None

        first_day = start_of_day(progress.enrolled_at)
        first_weekday = js_weekday(first_day)
        offsets = sorted((day - first_weekday) % 7 for day in days)

        weeks, position = divmod(lesson_index, len(offsets))
        unlock = first_day + timedelta(days=weeks * 7 + offsets[position])

        if config.duration_weeks and config.duration_weeks > 0:
            window_end = progress.enrolled_at + timedelta(weeks=config.duration_weeks)
            if unlock > window_end:
                unlock = window_end

        return unlock


# Global instance
scheduling_service = SchedulingService()
