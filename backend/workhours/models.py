from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Mapping, Sequence


class Direction(str, Enum):
    IN = "IN"
    OUT = "OUT"

    @classmethod
    def from_wire(cls, value: Any) -> "Direction | None":
        """Decode an upstream direction: ``1``/``0`` indicator codes or ``IN``/``OUT`` labels."""
        if isinstance(value, Direction):
            return value
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return {1: cls.IN, 0: cls.OUT}.get(value)
        text = str(value).strip().upper() if value is not None else ""
        if text in {"IN", "1"}:
            return cls.IN
        if text in {"OUT", "0"}:
            return cls.OUT
        return None


class Period(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


@dataclass(frozen=True)
class SwipeEvent:
    timestamp: datetime
    direction: Direction


@dataclass(frozen=True)
class SwipePair:
    in_time: datetime
    out_time: datetime
    duration_seconds: int
    # Leading-OUT repair: in_time is an estimate, not an observed swipe.
    estimated: bool = False
    # Closed at the reference "now" because the worker is still clocked in.
    live: bool = False


@dataclass(frozen=True)
class DailyResult:
    date: date
    sessions: tuple[SwipePair, ...] = ()
    events: tuple[SwipeEvent, ...] = ()
    exact_seconds: int = 0
    total_actual_seconds: int = 0
    is_currently_working: bool = False
    open_session_start: datetime | None = None
    total_swipes: int = 0
    dropped_swipes: int = 0
    break_seconds: int = 0
    notes: tuple[str, ...] = ()

    @property
    def total_minutes(self) -> int:
        return self.total_actual_seconds // 60

    @property
    def total_hours(self) -> float:
        return self.total_actual_seconds / 3600


@dataclass(frozen=True)
class AttendanceStatus:
    present_days: float = 0.0
    holiday_days: float = 0.0
    leave_days: float = 0.0
    other_days: float = 0.0
    error: str | None = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any] | None) -> "AttendanceStatus":
        if not payload or not isinstance(payload, Mapping):
            return cls()
        info = payload.get("monthlyStatusInfo", payload)
        if not isinstance(info, Mapping):
            return cls()
        return cls(
            present_days=_to_float(info.get("P", info.get("presentDays"))),
            holiday_days=_to_float(info.get("H", info.get("holidayDays"))),
            leave_days=_to_float(info.get("L", info.get("leaveDays"))),
            other_days=_to_float(info.get("O", info.get("otherDays"))),
        )

    def as_codes(self) -> dict[str, float]:
        return {
            "P": self.present_days,
            "H": self.holiday_days,
            "L": self.leave_days,
            "O": self.other_days,
        }


@dataclass(frozen=True)
class PeriodTotal:
    total_minutes: float = 0.0
    error: str | None = None

    @property
    def available(self) -> bool:
        return self.error is None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any] | None) -> "PeriodTotal":
        if not payload or not isinstance(payload, Mapping):
            return cls()
        raw = payload.get("totalMinutes", payload.get("totalProductionHours"))
        return cls(total_minutes=_to_float(raw))


@dataclass(frozen=True)
class PeriodInputs:
    start: date
    end: date
    daily: Sequence[DailyResult] = ()
    upstream: PeriodTotal | None = None
    today: DailyResult | None = None


@dataclass(frozen=True)
class PeriodStats:
    period: Period
    period_start: date
    period_end: date
    weekday_count: int
    base_required_seconds: int
    deduction_days: float
    required_seconds: int
    actual_seconds: int
    upstream_seconds: int
    live_seconds: int
    current_date_in_range: bool
    shortfall_seconds: int
    excess_seconds: int
    completion_ratio: float
    status_mode: str
    errors: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_complete(self) -> bool:
        return self.actual_seconds >= self.required_seconds

    @property
    def actual_hours(self) -> float:
        return self.actual_seconds / 3600

    @property
    def required_hours(self) -> float:
        return self.required_seconds / 3600


@dataclass(frozen=True)
class AchievementProjection:
    will_achieve_at: datetime | None
    hours_remaining: float
    is_achievable: bool


def _to_float(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0
