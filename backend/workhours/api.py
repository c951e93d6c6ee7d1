from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Optional, TypeVar

from fastapi import APIRouter, FastAPI, HTTPException, Request, status
from pydantic import BaseModel, Field

from .aggregate import coerce_period, compute_enhanced_period
from .errors import InvalidInputError, InvariantViolation
from .models import AttendanceStatus, Period, PeriodInputs, PeriodTotal
from .pairing import compute_daily
from .projection import project_achievement
from .reports import (
    fetch_worklog,
    serialize_daily_result,
    serialize_period_stats,
    serialize_projection,
)
from .sources import Clock, WorklogSources, system_clock
from .timeutil import ensure_aware, parse_date, resolve_timezone

logger = logging.getLogger(__name__)

T = TypeVar("T")

router = APIRouter(prefix="/api/hours", tags=["hours"])


class DailyRequest(BaseModel):
    date: str
    swipes: list[Any] = Field(default_factory=list)
    now: Optional[datetime] = None


class PeriodRequest(BaseModel):
    period: str = "week"
    startDate: str
    endDate: Optional[str] = None
    upstreamTotalMinutes: Optional[float] = None
    upstreamError: Optional[str] = None
    dailySwipes: dict[str, list[Any]] = Field(default_factory=dict)
    todaySwipes: Optional[list[Any]] = None
    attendanceStatus: Optional[dict[str, Any]] = None
    now: Optional[datetime] = None


class AchievementRequest(BaseModel):
    actualHours: float
    requiredHours: float
    isCurrentlyWorking: bool = False
    lastPunchIn: Optional[str] = None
    now: Optional[datetime] = None


class WorklogRequest(BaseModel):
    period: str = "day"
    startDate: Optional[str] = None
    endDate: Optional[str] = None


def _clock(request: Request) -> Clock:
    return request.app.state.clock


def _now(request: Request, value: datetime | None) -> datetime:
    zone = resolve_timezone()
    return ensure_aware(value, zone) if value is not None else _clock(request)()


def _run(func: Callable[[], T]) -> T:
    try:
        return func()
    except InvalidInputError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except InvariantViolation as exc:
        logger.error("Computation rejected: %s", exc)
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc


@router.post("/daily")
def daily_hours(payload: DailyRequest, request: Request) -> dict[str, Any]:
    now = _now(request, payload.now)
    result = _run(lambda: compute_daily(payload.swipes, payload.date, now))
    return serialize_daily_result(result)


def _period_inputs(payload: PeriodRequest, period: Period, now: datetime) -> PeriodInputs:
    start = parse_date(payload.startDate, "startDate")
    if period is Period.DAY:
        end = start
    elif payload.endDate:
        end = parse_date(payload.endDate, "endDate")
    else:
        raise InvalidInputError(f"{period.value.capitalize()} period requires both startDate and endDate parameters")

    daily = tuple(
        compute_daily(swipes, day, now) for day, swipes in sorted(payload.dailySwipes.items())
    )
    upstream = None
    if payload.upstreamError:
        upstream = PeriodTotal(error=payload.upstreamError)
    elif payload.upstreamTotalMinutes is not None:
        upstream = PeriodTotal(total_minutes=payload.upstreamTotalMinutes)

    today = None
    if payload.todaySwipes is not None:
        today = compute_daily(payload.todaySwipes, now.astimezone(resolve_timezone()).date(), now)
    return PeriodInputs(start=start, end=end, daily=daily, upstream=upstream, today=today)


@router.post("/period")
def period_hours(payload: PeriodRequest, request: Request) -> dict[str, Any]:
    now = _now(request, payload.now)

    def _compute():
        period = coerce_period(payload.period)
        inputs = _period_inputs(payload, period, now)
        attendance = (
            AttendanceStatus.from_mapping(payload.attendanceStatus)
            if payload.attendanceStatus is not None
            else None
        )
        return compute_enhanced_period(inputs, period, attendance, now)

    return serialize_period_stats(_run(_compute))


@router.post("/achievement")
def achievement(payload: AchievementRequest, request: Request) -> dict[str, Any]:
    now = _now(request, payload.now)
    projection = project_achievement(
        payload.actualHours,
        payload.requiredHours,
        payload.isCurrentlyWorking,
        payload.lastPunchIn,
        now,
        tz=resolve_timezone(),
    )
    return serialize_projection(projection)


@router.post("/worklogs")
def worklogs(payload: WorklogRequest, request: Request) -> dict[str, Any]:
    sources: WorklogSources | None = request.app.state.sources
    if sources is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="worklog sources are not configured",
        )
    return _run(lambda: fetch_worklog(sources, payload.period, payload.startDate, payload.endDate))


def create_app(sources: WorklogSources | None = None, *, clock: Clock | None = None) -> FastAPI:
    app = FastAPI(title="Work Hours Engine")
    app.state.sources = sources
    app.state.clock = clock or (sources.clock if sources is not None else system_clock())
    app.include_router(router)
    return app
