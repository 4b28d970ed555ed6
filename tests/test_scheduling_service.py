"""Unit tests for lesson availability and track progress (pure functions)."""
from datetime import datetime, timedelta, timezone

import pytest

from app.schemas.track import ScheduleConfig, EnrollmentState
from app.services.scheduling_service import scheduling_service, round_half_up
from tests.conftest import NOW


def evaluate(index, total, config, enrolled_at=NOW, now=NOW):
    return scheduling_service.calculate_lesson_availability(
        index, total, config, EnrollmentState(enrolled_at=enrolled_at), now=now
    )


@pytest.mark.unit
class TestImmediateAccess:
    def test_flexible_opens_every_lesson(self):
        config = ScheduleConfig(schedule_type="flexible")
        far_future = NOW + timedelta(days=365)
        for index in range(5):
            result = evaluate(index, 5, config, enrolled_at=far_future)
            assert result.available
            assert result.available_date == NOW

    def test_allow_all_overrides_pacing(self):
        config = ScheduleConfig(
            schedule_type="fixed_dates",
            start_date=NOW + timedelta(days=30),
            end_date=NOW + timedelta(days=60),
            allow_all_lessons_immediately=True,
        )
        for index in range(4):
            result = evaluate(index, 4, config)
            assert result.available
            assert result.reason == "immediate access"

    def test_unknown_schedule_type_is_flexible(self):
        result = evaluate(3, 4, ScheduleConfig(schedule_type="lunar_cycle"))
        assert result.available
        assert result.reason == "flexible schedule"

    def test_null_allow_all_is_not_immediate(self):
        config = ScheduleConfig(
            schedule_type="duration_based",
            lessons_per_week=1,
            allow_all_lessons_immediately=None,
        )
        assert not evaluate(1, 3, config).available


@pytest.mark.unit
class TestFixedDates:
    def config(self, start_offset_days=-5, length_days=10):
        start = NOW + timedelta(days=start_offset_days)
        return ScheduleConfig(
            schedule_type="fixed_dates",
            start_date=start,
            end_date=start + timedelta(days=length_days),
        )

    def test_unlock_dates_strictly_increase(self):
        config = self.config()
        dates = [evaluate(k, 5, config).available_date for k in range(5)]
        for earlier, later in zip(dates, dates[1:]):
            assert earlier < later

    def test_slots_split_window_evenly(self):
        config = self.config(start_offset_days=-5, length_days=10)
        assert evaluate(0, 5, config).available_date == config.start_date
        assert evaluate(1, 5, config).available_date == config.start_date + timedelta(days=2)
        assert evaluate(4, 5, config).available_date == config.start_date + timedelta(days=8)

    def test_availability_follows_now(self):
        config = self.config(start_offset_days=-5, length_days=10)
        # Slots at -5, -3, -1, +1, +3 days
        available = [evaluate(k, 5, config).available for k in range(5)]
        assert available == [True, True, True, False, False]

    def test_locked_reason_names_date(self):
        config = self.config(start_offset_days=18, length_days=10)
        result = evaluate(0, 5, config)
        assert not result.available
        assert result.reason == "available on 2026-11-01"

    def test_zero_lessons_opens(self):
        result = evaluate(0, 0, self.config())
        assert result.available
        assert result.reason == "no lessons scheduled"

    def test_missing_end_date_fails_open(self):
        config = ScheduleConfig(schedule_type="fixed_dates", start_date=NOW + timedelta(days=3))
        result = evaluate(2, 4, config)
        assert result.available
        assert result.reason == "schedule incomplete"

    def test_naive_dates_read_as_utc(self):
        config = ScheduleConfig(
            schedule_type="fixed_dates",
            start_date=datetime(2026, 10, 15, 0, 0),
            end_date=datetime(2026, 10, 25, 0, 0),
        )
        result = evaluate(0, 2, config)
        assert result.available_date == datetime(2026, 10, 15, tzinfo=timezone.utc)
        assert not result.available


@pytest.mark.unit
class TestDurationBased:
    def test_two_per_week(self):
        config = ScheduleConfig(schedule_type="duration_based", lessons_per_week=2)
        unlocks = [evaluate(k, 4, config).available_date for k in range(4)]
        assert unlocks == [NOW, NOW, NOW + timedelta(weeks=1), NOW + timedelta(weeks=1)]

    def test_availability_three_days_in(self):
        config = ScheduleConfig(schedule_type="duration_based", lessons_per_week=2)
        enrolled = NOW - timedelta(days=3)
        available = [evaluate(k, 4, config, enrolled_at=enrolled).available for k in range(4)]
        assert available == [True, True, False, False]

    def test_non_positive_pacing_clamps_to_one(self):
        config = ScheduleConfig(schedule_type="duration_based", lessons_per_week=0)
        assert evaluate(2, 4, config).available_date == NOW + timedelta(weeks=2)

        config = ScheduleConfig(schedule_type="duration_based", lessons_per_week=-3)
        assert evaluate(1, 4, config).available_date == NOW + timedelta(weeks=1)

    def test_pacing_derived_from_duration(self):
        config = ScheduleConfig(schedule_type="duration_based", duration_weeks=2)
        # 6 lessons over 2 weeks -> 3 per week
        assert evaluate(2, 6, config).available_date == NOW
        assert evaluate(3, 6, config).available_date == NOW + timedelta(weeks=1)

    def test_no_pacing_fails_open(self):
        result = evaluate(5, 6, ScheduleConfig(schedule_type="duration_based"))
        assert result.available


@pytest.mark.unit
class TestWeeklySchedule:
    def test_nth_scheduled_weekday(self):
        # NOW is a Wednesday; Monday = 1, Wednesday = 3
        config = ScheduleConfig(schedule_type="weekly_schedule", schedule_days=[3, 1])
        unlocks = [evaluate(k, 4, config).available_date for k in range(4)]
        assert unlocks == [
            datetime(2026, 10, 14, tzinfo=timezone.utc),
            datetime(2026, 10, 19, tzinfo=timezone.utc),
            datetime(2026, 10, 21, tzinfo=timezone.utc),
            datetime(2026, 10, 26, tzinfo=timezone.utc),
        ]

    def test_sunday_is_zero(self):
        config = ScheduleConfig(schedule_type="weekly_schedule", schedule_days=[0])
        assert evaluate(0, 1, config).available_date == datetime(2026, 10, 18, tzinfo=timezone.utc)

    def test_duration_window_clamps_late_lessons(self):
        config = ScheduleConfig(schedule_type="weekly_schedule", schedule_days=[1], duration_weeks=1)
        assert evaluate(0, 3, config).available_date == datetime(2026, 10, 19, tzinfo=timezone.utc)
        assert evaluate(2, 3, config).available_date == NOW + timedelta(weeks=1)

    def test_invalid_days_fail_open(self):
        config = ScheduleConfig(schedule_type="weekly_schedule", schedule_days=[7, 9])
        assert evaluate(1, 2, config).available

        config = ScheduleConfig(schedule_type="weekly_schedule", schedule_days=[])
        assert evaluate(1, 2, config).available


@pytest.mark.unit
class TestTrackProgress:
    def test_zero_lessons(self):
        assert scheduling_service.calculate_track_progress(0, 0) == 0

    def test_all_completed(self):
        for total in range(1, 12):
            assert scheduling_service.calculate_track_progress(total, total) == 100

    def test_monotonic_in_completed(self):
        for total in range(1, 12):
            values = [scheduling_service.calculate_track_progress(c, total) for c in range(total + 1)]
            assert values == sorted(values)

    def test_rounds_half_up(self):
        assert scheduling_service.calculate_track_progress(1, 3) == 33
        assert scheduling_service.calculate_track_progress(2, 3) == 67
        assert scheduling_service.calculate_track_progress(1, 8) == 13
        assert round_half_up(2.5) == 3

    def test_clamped(self):
        assert scheduling_service.calculate_track_progress(5, 3) == 100
        assert scheduling_service.calculate_track_progress(-1, 3) == 0

    def test_config_does_not_change_result(self):
        config = ScheduleConfig(schedule_type="duration_based", lessons_per_week=1)
        progress = EnrollmentState(enrolled_at=NOW)
        assert scheduling_service.calculate_track_progress(1, 4, config, progress) == 25


@pytest.mark.unit
class TestFormatAvailableDate:
    def test_labels(self):
        assert scheduling_service.format_available_date(NOW, now=NOW) == "Available today"
        assert scheduling_service.format_available_date(NOW + timedelta(days=1), now=NOW) == "Available tomorrow"
        assert scheduling_service.format_available_date(NOW + timedelta(days=4), now=NOW) == "Available in 4 days"
        assert scheduling_service.format_available_date(NOW + timedelta(days=10), now=NOW) == "Available on Sat, 24 Oct 2026"
