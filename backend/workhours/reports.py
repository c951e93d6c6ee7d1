from __future__ import annotations

import logging
from datetime import date, datetime, tzinfo
from typing import Any, Dict, Mapping

from .aggregate import coerce_period, compute_enhanced_period
from .errors import InvalidInputError
from .models import (
    AchievementProjection,
    AttendanceStatus,
    DailyResult,
    Direction,
    Period,
    PeriodInputs,
    PeriodStats,
    PeriodTotal,
    SwipePair,
)
from .pairing import compute_daily
from .projection import project_achievement
from .sources import WorklogSources
from .timeutil import (
    ensure_aware,
    format_dt,
    format_hours,
    format_time_12h,
    format_work_time,
    minutes_to_hhmm,
    parse_date,
    resolve_timezone,
)

logger = logging.getLogger(__name__)


def _format_iso(value: datetime | None, tz: tzinfo) -> str | None:
    return value.astimezone(tz).isoformat() if value else None


def serialize_swipe_pair(pair: SwipePair, tz: tzinfo) -> dict[str, Any]:
    minutes = pair.duration_seconds // 60
    seconds = pair.duration_seconds % 60
    return {
        "inSwipe": _format_iso(pair.in_time, tz),
        "outSwipe": _format_iso(pair.out_time, tz),
        "in": format_time_12h(pair.in_time, tz),
        "out": format_time_12h(pair.out_time, tz),
        "durationSeconds": pair.duration_seconds,
        "actualHours": round(pair.duration_seconds / 3600, 2),
        "duration": f"{format_work_time(minutes)} {seconds}s" if seconds else format_work_time(minutes),
        "estimated": pair.estimated,
        "live": pair.live,
    }


def serialize_daily_result(result: DailyResult, tz: tzinfo | str | None = None) -> dict[str, Any]:
    zone = resolve_timezone(tz)
    total_minutes = result.total_minutes
    return {
        "date": result.date.isoformat(),
        "totalSwipes": result.total_swipes,
        "droppedSwipes": result.dropped_swipes,
        "swipePairs": [serialize_swipe_pair(pair, zone) for pair in result.sessions],
        "exactSeconds": result.exact_seconds,
        "totalActualSeconds": result.total_actual_seconds,
        "totalMinutes": total_minutes,
        "totalActualHours": round(result.total_hours, 2),
        "hours": total_minutes // 60,
        "minutes": total_minutes % 60,
        "formattedTime": format_work_time(total_minutes),
        "durationHHMM": minutes_to_hhmm(total_minutes),
        "breakSeconds": result.break_seconds,
        "isCurrentlyWorking": result.is_currently_working,
        "lastPunchIn": _format_iso(result.open_session_start, zone),
        "notes": list(result.notes),
    }


def serialize_period_stats(stats: PeriodStats) -> dict[str, Any]:
    return {
        "period": stats.period.value,
        "startDate": stats.period_start.isoformat(),
        "endDate": stats.period_end.isoformat(),
        "weekdayCount": stats.weekday_count,
        "baseRequiredHours": stats.base_required_seconds / 3600,
        "deductionDays": stats.deduction_days,
        "requiredHours": stats.required_hours,
        "actualHours": stats.actual_hours,
        "requiredSeconds": stats.required_seconds,
        "actualSeconds": stats.actual_seconds,
        "upstreamSeconds": stats.upstream_seconds,
        "liveSeconds": stats.live_seconds,
        "currentDateInRange": stats.current_date_in_range,
        "shortfallHours": stats.shortfall_seconds / 3600,
        "excessHours": stats.excess_seconds / 3600,
        "isComplete": stats.is_complete,
        "completionPercentage": stats.completion_ratio * 100,
        "statusMode": stats.status_mode,
        "errors": list(stats.errors),
    }


def serialize_projection(projection: AchievementProjection, tz: tzinfo | str | None = None) -> dict[str, Any]:
    zone = resolve_timezone(tz)
    return {
        "willAchieveAt": format_dt(projection.will_achieve_at, zone),
        "willAchieveAtIso": _format_iso(projection.will_achieve_at, zone),
        "hoursRemaining": projection.hours_remaining,
        "isAchievable": projection.is_achievable,
    }


def _display_block(stats: PeriodStats) -> dict[str, Any]:
    actual_hours = stats.actual_hours
    shortfall_hours = stats.shortfall_seconds / 3600
    excess_hours = stats.excess_seconds / 3600
    is_excess = stats.status_mode == "excess"
    is_complete = stats.is_complete

    if is_excess:
        status_message = f"OVERDRIVE MODE: +{format_hours(excess_hours)}"
    elif is_complete:
        status_message = "COMPLETE"
    else:
        status_message = f"{format_hours(shortfall_hours)} REMAINING"

    return {
        "activeHours": format_hours(actual_hours),
        "requiredHours": format_hours(stats.base_required_seconds / 3600),
        "actualRequiredHours": format_hours(stats.required_hours),
        "excessTime": format_hours(excess_hours) if is_excess else None,
        "shortfallTime": format_hours(shortfall_hours) if not is_complete else None,
        "progressPercentage": round(stats.completion_ratio * 100),
        "statusMessage": status_message,
        "statusClass": stats.status_mode,
    }


def _fetch_attendance_status(sources: WorklogSources, start: date, end: date) -> AttendanceStatus:
    try:
        payload = sources.attendance.fetch_attendance_status(start, end)
    except Exception as exc:
        logger.warning("Attendance status unavailable for %s..%s: %s", start, end, exc)
        return AttendanceStatus(error=f"attendance status unavailable: {exc}")
    if payload is not None and not isinstance(payload, Mapping):
        logger.warning("Attendance status for %s..%s is not a mapping: %r", start, end, payload)
        return AttendanceStatus(error=f"attendance status unavailable: unexpected {type(payload).__name__} payload")
    return AttendanceStatus.from_mapping(payload)


def _fetch_period_total(sources: WorklogSources, start: date, end: date) -> PeriodTotal:
    try:
        payload = sources.period_totals.fetch_period_total(start, end)
    except Exception as exc:
        logger.warning("Period total unavailable for %s..%s: %s", start, end, exc)
        return PeriodTotal(error=f"period total unavailable: {exc}")
    if payload is not None and not isinstance(payload, Mapping):
        logger.warning("Period total for %s..%s is not a mapping: %r", start, end, payload)
        return PeriodTotal(error=f"period total unavailable: unexpected {type(payload).__name__} payload")
    return PeriodTotal.from_mapping(payload)


def _fetch_daily(
    sources: WorklogSources,
    day: date,
    now: datetime,
    tz: tzinfo,
) -> tuple[DailyResult, list[dict[str, Any]], str | None]:
    try:
        swipes = sources.swipes.fetch_swipes(day)
    except Exception as exc:
        logger.warning("Swipes unavailable for %s: %s", day, exc)
        return DailyResult(date=day), [], f"swipes unavailable for {day.isoformat()}: {exc}"

    result = compute_daily(swipes, day, now, tz=tz)
    all_swipes = [
        {
            "time": format_dt(event.timestamp, tz),
            "type": event.direction.value,
            "indicator": 1 if event.direction is Direction.IN else 0,
        }
        for event in result.events
    ]
    return result, all_swipes, None


def _resolve_period_dates(period: Period, start_date: Any, end_date: Any, today: date) -> tuple[date, date]:
    if period is Period.DAY:
        selected = parse_date(start_date, "startDate") if start_date else today
        return selected, selected

    if not start_date or not end_date:
        raise InvalidInputError(f"{period.value.capitalize()} period requires both startDate and endDate parameters")
    start = parse_date(start_date, "startDate")
    end = parse_date(end_date, "endDate")
    if end < start:
        raise InvalidInputError("endDate must not be before startDate")
    return start, end


def fetch_worklog(
    sources: WorklogSources,
    period: Period | str | None,
    start_date: str | date | None = None,
    end_date: str | date | None = None,
    *,
    tz: tzinfo | str | None = None,
) -> Dict[str, Any]:
    zone = resolve_timezone(tz)
    now = ensure_aware(sources.clock(), zone).astimezone(zone)
    today = now.date()
    resolved_period = coerce_period(period)
    start, end = _resolve_period_dates(resolved_period, start_date, end_date, today)

    errors: list[str] = []
    all_swipes: list[dict[str, Any]] = []
    sessions: dict[str, Any]
    achievement: AchievementProjection | None = None
    today_result: DailyResult | None = None

    if resolved_period is Period.DAY:
        day_result, all_swipes, error = _fetch_daily(sources, start, now, zone)
        if error:
            errors.append(error)
        inputs = PeriodInputs(start=start, end=end, daily=(day_result,))
        sessions = serialize_daily_result(day_result, zone)
    else:
        upstream = _fetch_period_total(sources, start, end)
        if start <= today <= end:
            today_result, _, error = _fetch_daily(sources, today, now, zone)
            if error:
                errors.append(error)
        inputs = PeriodInputs(start=start, end=end, upstream=upstream, today=today_result)
        sessions = {
            "totalActualHours": round(upstream.total_minutes / 60, 2),
            "formattedTime": format_work_time(int(upstream.total_minutes)),
            "isCurrentlyWorking": bool(today_result and today_result.is_currently_working),
            "swipePairs": [],
        }

    attendance = _fetch_attendance_status(sources, start, end)
    stats = compute_enhanced_period(inputs, resolved_period, attendance, now, tz=zone)
    errors.extend(stats.errors)

    if resolved_period is Period.DAY:
        if start == today:
            day_result = inputs.daily[0]
            # Day projections target the flat daily requirement, before leave deductions.
            achievement = project_achievement(
                day_result.total_hours,
                stats.base_required_seconds / 3600,
                day_result.is_currently_working,
                day_result.open_session_start,
                now,
                tz=zone,
            )
    elif today_result is not None:
        achievement = project_achievement(
            stats.actual_hours,
            stats.required_hours,
            today_result.is_currently_working,
            today_result.open_session_start,
            now,
            tz=zone,
        )

    logger.info(
        "Worklog %s %s..%s: actual=%.2fh required=%.2fh status=%s",
        resolved_period.value,
        start.isoformat(),
        end.isoformat(),
        stats.actual_hours,
        stats.required_hours,
        stats.status_mode,
    )

    return {
        "success": True,
        "startDate": start.isoformat(),
        "endDate": end.isoformat(),
        "period": resolved_period.value,
        "totalSwipes": len(all_swipes),
        "allSwipes": all_swipes,
        "sessions": sessions,
        "stats": serialize_period_stats(stats),
        "attendanceStatusInfo": attendance.as_codes(),
        "enhancedCalculation": {
            "currentDateInRange": stats.current_date_in_range,
            "achievementTime": format_dt(achievement.will_achieve_at, zone) if achievement else None,
            "achievement": serialize_projection(achievement, zone) if achievement else None,
            "additionalSources": {
                "currentActualHours": stats.live_seconds / 3600,
            },
        },
        "display": _display_block(stats),
        "metadata": {
            "currentTime": format_dt(now, zone),
            "timezone": str(zone),
        },
        "errors": errors,
    }
