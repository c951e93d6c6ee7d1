from datetime import date

import pytest

from workhours.aggregate import (
    base_required_seconds,
    coerce_period,
    compute_enhanced_period,
    count_weekdays,
    deduction_days,
    month_bounds,
    required_seconds,
    week_bounds,
)
from workhours.errors import InvalidInputError
from workhours.models import AttendanceStatus, DailyResult, Period, PeriodInputs, PeriodTotal

from conftest import ist

HOUR = 3600
MONDAY = date(2024, 5, 6)
SUNDAY = date(2024, 5, 12)


def test_count_weekdays_inclusive():
    assert count_weekdays(MONDAY, SUNDAY) == 5
    assert count_weekdays(date(2024, 5, 11), date(2024, 5, 12)) == 0
    assert count_weekdays(date(2024, 5, 1), date(2024, 5, 31)) == 23
    assert count_weekdays(MONDAY, MONDAY) == 1


def test_week_and_month_bounds():
    assert week_bounds(date(2024, 5, 8)) == (date(2024, 5, 5), date(2024, 5, 11))
    assert week_bounds(date(2024, 5, 5)) == (date(2024, 5, 5), date(2024, 5, 11))
    assert month_bounds(date(2024, 2, 14)) == (date(2024, 2, 1), date(2024, 2, 29))


def test_required_hours_per_period():
    assert base_required_seconds(Period.DAY, MONDAY, MONDAY, hours_per_day=8) == (1, 8 * HOUR)
    assert base_required_seconds(Period.WEEK, MONDAY, SUNDAY, hours_per_day=8) == (5, 40 * HOUR)


def test_week_with_one_leave_day_requires_32_hours():
    status = AttendanceStatus(leave_days=1)
    assert required_seconds(Period.WEEK, MONDAY, SUNDAY, status, hours_per_day=8) == 32 * HOUR


def test_other_days_only_deduct_for_single_day():
    status = AttendanceStatus(holiday_days=1, leave_days=1, other_days=1)
    assert deduction_days(Period.DAY, status) == 3
    assert deduction_days(Period.MONTH, status) == 2


def test_required_hours_never_negative():
    status = AttendanceStatus(holiday_days=2)
    assert required_seconds(Period.DAY, MONDAY, MONDAY, status, hours_per_day=8) == 0


def test_day_period_uses_daily_total(tz):
    daily = DailyResult(date=MONDAY, total_actual_seconds=9 * HOUR)
    stats = compute_enhanced_period(
        PeriodInputs(start=MONDAY, end=MONDAY, daily=(daily,)),
        "day",
        AttendanceStatus(),
        ist("2024-05-06", "20:00:00"),
        tz=tz,
        hours_per_day=8,
    )

    assert stats.required_seconds == 8 * HOUR
    assert stats.actual_seconds == 9 * HOUR
    assert stats.excess_seconds == HOUR
    assert stats.shortfall_seconds == 0
    assert stats.completion_ratio == 1.0
    assert stats.status_mode == "excess"


def test_week_adds_live_hours_for_today(tz):
    today = DailyResult(date=date(2024, 5, 8), total_actual_seconds=3 * HOUR, is_currently_working=True)
    stats = compute_enhanced_period(
        PeriodInputs(start=MONDAY, end=SUNDAY, upstream=PeriodTotal(total_minutes=16 * 60), today=today),
        Period.WEEK,
        AttendanceStatus(leave_days=1),
        ist("2024-05-08", "12:00:00"),
        tz=tz,
        hours_per_day=8,
    )

    assert stats.current_date_in_range is True
    assert stats.upstream_seconds == 16 * HOUR
    assert stats.live_seconds == 3 * HOUR
    assert stats.actual_seconds == 19 * HOUR
    assert stats.required_seconds == 32 * HOUR
    assert stats.shortfall_seconds == 13 * HOUR
    assert stats.completion_ratio == pytest.approx(19 / 32)
    assert stats.status_mode == "incomplete"
    assert stats.errors == ()


def test_week_outside_current_date_ignores_live_hours(tz):
    today = DailyResult(date=date(2024, 5, 20), total_actual_seconds=3 * HOUR)
    stats = compute_enhanced_period(
        PeriodInputs(start=MONDAY, end=SUNDAY, upstream=PeriodTotal(total_minutes=2400), today=today),
        Period.WEEK,
        None,
        ist("2024-05-20", "12:00:00"),
        tz=tz,
        hours_per_day=8,
    )

    assert stats.current_date_in_range is False
    assert stats.live_seconds == 0
    assert stats.actual_seconds == 40 * HOUR
    assert stats.status_mode == "complete"


def test_unavailable_upstream_falls_back_to_zero_with_error(tz):
    stats = compute_enhanced_period(
        PeriodInputs(start=MONDAY, end=SUNDAY, upstream=PeriodTotal(error="period total unavailable: timeout")),
        Period.WEEK,
        AttendanceStatus(error="attendance status unavailable: 500"),
        ist("2024-05-20", "12:00:00"),
        tz=tz,
        hours_per_day=8,
    )

    assert stats.actual_seconds == 0
    assert stats.is_complete is False
    assert stats.status_mode == "incomplete"
    assert stats.errors == (
        "attendance status unavailable: 500",
        "period total unavailable: timeout",
    )


def test_daily_results_substitute_for_upstream_total(tz):
    daily = (
        DailyResult(date=MONDAY, total_actual_seconds=8 * HOUR),
        DailyResult(date=date(2024, 5, 7), total_actual_seconds=7 * HOUR),
        DailyResult(date=date(2024, 5, 20), total_actual_seconds=5 * HOUR),
    )
    stats = compute_enhanced_period(
        PeriodInputs(start=MONDAY, end=SUNDAY, daily=daily),
        Period.WEEK,
        None,
        ist("2024-05-20", "12:00:00"),
        tz=tz,
        hours_per_day=8,
    )

    assert stats.actual_seconds == 15 * HOUR


def test_zero_requirement_counts_as_complete(tz):
    stats = compute_enhanced_period(
        PeriodInputs(start=date(2024, 5, 11), end=date(2024, 5, 12), upstream=PeriodTotal(total_minutes=0)),
        Period.WEEK,
        None,
        ist("2024-05-20", "12:00:00"),
        tz=tz,
        hours_per_day=8,
    )

    assert stats.required_seconds == 0
    assert stats.completion_ratio == 1.0
    assert stats.status_mode == "complete"


def test_invalid_period_and_range(tz):
    with pytest.raises(InvalidInputError):
        coerce_period("fortnight")
    with pytest.raises(InvalidInputError):
        compute_enhanced_period(
            PeriodInputs(start=SUNDAY, end=MONDAY),
            Period.WEEK,
            None,
            ist("2024-05-20", "12:00:00"),
            tz=tz,
        )


def test_day_period_only_counts_the_selected_day(tz):
    daily = (
        DailyResult(date=MONDAY, total_actual_seconds=6 * HOUR),
        DailyResult(date=date(2024, 5, 7), total_actual_seconds=7 * HOUR),
    )
    stats = compute_enhanced_period(
        PeriodInputs(start=MONDAY, end=MONDAY, daily=daily),
        Period.DAY,
        None,
        ist("2024-05-06", "20:00:00"),
        tz=tz,
        hours_per_day=8,
    )

    assert stats.actual_seconds == 6 * HOUR
    assert stats.shortfall_seconds == 2 * HOUR
