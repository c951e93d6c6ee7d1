from __future__ import annotations

import calendar
import logging
from datetime import date, datetime, timedelta, tzinfo

from .config import settings
from .errors import InvalidInputError
from .models import AttendanceStatus, PeriodInputs, PeriodStats, Period
from .timeutil import ensure_aware, iter_days, resolve_timezone, round_half_up

logger = logging.getLogger(__name__)

_SECONDS_PER_HOUR = 3600


def coerce_period(value: Period | str | None) -> Period:
    if isinstance(value, Period):
        return value
    text = (value or Period.DAY.value).strip().lower()
    try:
        return Period(text)
    except ValueError as exc:
        raise InvalidInputError("period must be one of: day, week, month") from exc


def count_weekdays(start: date, end: date) -> int:
    return sum(1 for day in iter_days(start, end) if day.weekday() < 5)


def week_bounds(day: date) -> tuple[date, date]:
    # Sunday through Saturday, as the attendance dashboard presents weeks.
    start = day - timedelta(days=(day.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def month_bounds(day: date) -> tuple[date, date]:
    last_day = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last_day)


def base_required_seconds(
    period: Period,
    start: date,
    end: date,
    *,
    hours_per_day: float | None = None,
) -> tuple[int, int]:
    """Return ``(weekday_count, required_seconds)`` before leave/holiday deductions."""
    per_day = settings.hours_per_day if hours_per_day is None else hours_per_day
    if period is Period.DAY:
        return count_weekdays(start, start), round_half_up(per_day * _SECONDS_PER_HOUR)

    weekdays = count_weekdays(start, end)
    logger.info(
        "%s period %s..%s: %s weekdays x %s hours",
        period.value,
        start.isoformat(),
        end.isoformat(),
        weekdays,
        per_day,
    )
    return weekdays, round_half_up(weekdays * per_day * _SECONDS_PER_HOUR)


def deduction_days(period: Period, status: AttendanceStatus | None) -> float:
    if status is None:
        return 0.0
    days = status.holiday_days + status.leave_days
    if period is Period.DAY:
        days += status.other_days
    return days


def _deduction_seconds(period: Period, status: AttendanceStatus | None, per_day: float) -> int:
    return round_half_up(deduction_days(period, status) * per_day * _SECONDS_PER_HOUR)


def required_seconds(
    period: Period,
    start: date,
    end: date,
    status: AttendanceStatus | None = None,
    *,
    hours_per_day: float | None = None,
) -> int:
    per_day = settings.hours_per_day if hours_per_day is None else hours_per_day
    _, base = base_required_seconds(period, start, end, hours_per_day=per_day)
    return max(0, base - _deduction_seconds(period, status, per_day))


def _status_mode(actual: int, required: int) -> str:
    if actual > required:
        return "excess"
    if actual >= required:
        return "complete"
    return "incomplete"


def compute_enhanced_period(
    inputs: PeriodInputs,
    period: Period | str,
    attendance: AttendanceStatus | None,
    now: datetime,
    *,
    tz: tzinfo | str | None = None,
    hours_per_day: float | None = None,
) -> PeriodStats:
    resolved_period = coerce_period(period)
    zone = resolve_timezone(tz)
    reference = ensure_aware(now, zone)
    per_day = settings.hours_per_day if hours_per_day is None else hours_per_day

    start = inputs.start
    end = inputs.start if resolved_period is Period.DAY else inputs.end
    if end < start:
        raise InvalidInputError("period end must not be before period start")

    errors: list[str] = []
    if attendance is not None and attendance.error:
        errors.append(attendance.error)

    weekdays, base = base_required_seconds(resolved_period, start, end, hours_per_day=per_day)
    deducted_days = deduction_days(resolved_period, attendance)
    required = max(0, base - _deduction_seconds(resolved_period, attendance, per_day))

    current_date = reference.astimezone(zone).date()
    in_range = start <= current_date <= end
    upstream_seconds = 0
    live_seconds = 0

    if resolved_period is Period.DAY:
        actual = sum(result.total_actual_seconds for result in inputs.daily if result.date == start)
    elif inputs.upstream is not None:
        if inputs.upstream.available:
            upstream_seconds = round_half_up(inputs.upstream.total_minutes * 60)
        else:
            logger.warning(
                "Period total unavailable for %s..%s: %s",
                start.isoformat(),
                end.isoformat(),
                inputs.upstream.error,
            )
            errors.append(inputs.upstream.error or "period total unavailable")
        if in_range and inputs.today is not None and inputs.today.date == current_date:
            live_seconds = inputs.today.total_actual_seconds
        actual = upstream_seconds + live_seconds
    elif inputs.daily:
        actual = sum(
            result.total_actual_seconds for result in inputs.daily if start <= result.date <= end
        )
    else:
        errors.append("period total unavailable")
        actual = 0

    shortfall = max(0, required - actual)
    excess = max(0, actual - required)
    ratio = min(1.0, actual / required) if required > 0 else 1.0

    return PeriodStats(
        period=resolved_period,
        period_start=start,
        period_end=end,
        weekday_count=weekdays,
        base_required_seconds=base,
        deduction_days=deducted_days,
        required_seconds=required,
        actual_seconds=actual,
        upstream_seconds=upstream_seconds,
        live_seconds=live_seconds,
        current_date_in_range=in_range,
        shortfall_seconds=shortfall,
        excess_seconds=excess,
        completion_ratio=ratio,
        status_mode=_status_mode(actual, required),
        errors=tuple(errors),
    )
