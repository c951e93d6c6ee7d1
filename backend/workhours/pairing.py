from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import date, datetime, timedelta, tzinfo
from typing import Any

from .config import settings
from .errors import InvariantViolation
from .models import DailyResult, Direction, SwipeEvent, SwipePair
from .timeutil import (
    ensure_aware,
    format_dt,
    local_date,
    parse_date,
    parse_instant,
    resolve_timezone,
    round_half_up,
)

logger = logging.getLogger(__name__)

_TIMESTAMP_KEYS = ("timestamp", "punchDateTime", "event_time")
_DIRECTION_KEYS = ("direction", "inOutIndicator", "inout_flag")


def _pick(record: Mapping[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        if key in record:
            return record[key]
    return None


def _coerce_event(record: Any, tz: tzinfo) -> SwipeEvent | None:
    if isinstance(record, SwipeEvent):
        # In-process events carry civil times; only wire records default to UTC.
        if isinstance(record.timestamp, datetime):
            timestamp = ensure_aware(record.timestamp, tz)
        else:
            timestamp = parse_instant(record.timestamp)
        direction = Direction.from_wire(record.direction)
    elif isinstance(record, Mapping):
        timestamp = parse_instant(_pick(record, _TIMESTAMP_KEYS))
        direction = Direction.from_wire(_pick(record, _DIRECTION_KEYS))
    else:
        return None

    if timestamp is None or direction is None:
        return None
    return SwipeEvent(timestamp=timestamp.astimezone(tz), direction=direction)


def normalize_swipes(raw: Any, *, tz: tzinfo | str | None = None) -> tuple[list[SwipeEvent], int]:
    """Turn raw swipe records into chronologically ordered events.

    Records whose timestamp or direction cannot be read are dropped and
    counted; the rest are still processed. Ties keep their input order.
    Returns ``(events, dropped_count)``.
    """
    zone = resolve_timezone(tz)
    if raw is None or isinstance(raw, (str, bytes, Mapping)) or not isinstance(raw, Sequence):
        if raw is not None:
            logger.warning("Swipes payload is not a sequence (%s); treating as empty", type(raw).__name__)
        return [], 0

    events: list[SwipeEvent] = []
    dropped = 0
    for index, record in enumerate(raw):
        event = _coerce_event(record, zone)
        if event is None:
            dropped += 1
            logger.warning("Dropping malformed swipe record at index %s: %r", index, record)
            continue
        events.append(event)

    events.sort(key=lambda item: item.timestamp)
    return events, dropped


def _duration_seconds(start: datetime, end: datetime) -> int:
    return round_half_up((end - start).total_seconds())


def _make_pair(start: datetime, end: datetime, *, estimated: bool = False, live: bool = False) -> SwipePair:
    if end < start:
        raise InvariantViolation(f"session ends before it starts: {start.isoformat()} > {end.isoformat()}")
    return SwipePair(
        in_time=start,
        out_time=end,
        duration_seconds=_duration_seconds(start, end),
        estimated=estimated,
        live=live,
    )


def create_swipe_pairs(
    events: Sequence[SwipeEvent],
    *,
    now: datetime,
    tz: tzinfo | str | None = None,
    leading_out_estimate_hours: float | None = None,
    notes: list[str] | None = None,
) -> list[SwipePair]:
    zone = resolve_timezone(tz)
    reference = ensure_aware(now, zone)
    estimate_hours = (
        settings.leading_out_estimate_hours
        if leading_out_estimate_hours is None
        else leading_out_estimate_hours
    )
    ordered = sorted(events, key=lambda item: item.timestamp)
    pairs: list[SwipePair] = []

    if ordered and ordered[0].direction is Direction.OUT:
        first_out = ordered[0].timestamp
        estimated_in = first_out - timedelta(hours=estimate_hours)
        pairs.append(_make_pair(estimated_in, first_out, estimated=True))
        if notes is not None:
            notes.append(
                f"First swipe is OUT at {format_dt(first_out, zone)}; "
                f"estimated IN at {format_dt(estimated_in, zone)}."
            )

    open_in: datetime | None = None
    for index, event in enumerate(ordered):
        if event.direction is Direction.IN:
            if open_in is not None and notes is not None:
                notes.append(
                    f"Ignored IN at {format_dt(open_in, zone)}; superseded by IN at "
                    f"{format_dt(event.timestamp, zone)}."
                )
            open_in = event.timestamp
            continue

        if open_in is None:
            # The leading OUT was already paired by the estimate above.
            if index > 0 and notes is not None:
                notes.append(
                    f"Ignored OUT at {format_dt(event.timestamp, zone)} without a matching prior IN."
                )
            continue

        if event.timestamp > open_in:
            pairs.append(_make_pair(open_in, event.timestamp))
        elif notes is not None:
            notes.append(
                f"Ignored OUT at {format_dt(event.timestamp, zone)}; not after IN at "
                f"{format_dt(open_in, zone)}."
            )
        open_in = None

    if open_in is not None:
        if local_date(open_in, zone) == local_date(reference, zone):
            close_at = max(reference.astimezone(zone), open_in)
            pairs.append(_make_pair(open_in, close_at, live=True))
        else:
            pairs.append(_make_pair(open_in, open_in))
            if notes is not None:
                notes.append(
                    f"Missing OUT after last IN at {format_dt(open_in, zone)}; "
                    "session closed with zero duration."
                )

    return pairs


def total_actual_seconds(pairs: Sequence[SwipePair]) -> tuple[int, int]:
    """Return ``(exact_seconds, rounded_seconds)`` for a set of sessions.

    Whole seconds are summed first and rounded to the minute once.
    """
    exact_seconds = sum(pair.duration_seconds for pair in pairs)
    rounded_minutes = round_half_up(exact_seconds / 60)
    return exact_seconds, rounded_minutes * 60


def break_seconds(pairs: Sequence[SwipePair]) -> int:
    total = 0
    previous_out: datetime | None = None
    for pair in sorted(pairs, key=lambda item: item.in_time):
        if previous_out is not None and pair.in_time > previous_out:
            total += _duration_seconds(previous_out, pair.in_time)
        previous_out = pair.out_time if previous_out is None else max(previous_out, pair.out_time)
    return total


def compute_daily(
    swipes: Any,
    day: date | str,
    now: datetime,
    *,
    tz: tzinfo | str | None = None,
    leading_out_estimate_hours: float | None = None,
) -> DailyResult:
    zone = resolve_timezone(tz)
    selected_date = parse_date(day)
    reference = ensure_aware(now, zone)

    events, dropped = normalize_swipes(swipes, tz=zone)
    notes: list[str] = []
    if dropped:
        notes.append(f"Dropped {dropped} malformed swipe record(s).")

    if not events:
        return DailyResult(
            date=selected_date, total_swipes=dropped, dropped_swipes=dropped, notes=tuple(notes)
        )

    pairs = create_swipe_pairs(
        events,
        now=reference,
        tz=zone,
        leading_out_estimate_hours=leading_out_estimate_hours,
        notes=notes,
    )
    exact_seconds, rounded_seconds = total_actual_seconds(pairs)

    last_event = events[-1]
    is_working = last_event.direction is Direction.IN

    return DailyResult(
        date=selected_date,
        sessions=tuple(pairs),
        events=tuple(events),
        exact_seconds=exact_seconds,
        total_actual_seconds=rounded_seconds,
        is_currently_working=is_working,
        open_session_start=last_event.timestamp if is_working else None,
        total_swipes=len(events) + dropped,
        dropped_swipes=dropped,
        break_seconds=break_seconds(pairs),
        notes=tuple(notes),
    )
