from __future__ import annotations

from datetime import datetime, timedelta, tzinfo

from .models import AchievementProjection
from .timeutil import ensure_aware, parse_instant, resolve_timezone


def project_achievement(
    actual_hours: float,
    required_hours: float,
    is_currently_working: bool,
    last_in_time: datetime | str | None,
    now: datetime,
    *,
    tz: tzinfo | str | None = None,
) -> AchievementProjection:
    """Project the wall-clock instant at which ``required_hours`` is reached.

    The projection is anchored to the last IN, not to ``now``: the running
    total already includes the time elapsed since that IN, so the full
    remaining delta is added to the IN instant.
    """
    zone = resolve_timezone(tz if tz is not None else now.tzinfo)

    if actual_hours >= required_hours:
        return AchievementProjection(will_achieve_at=None, hours_remaining=0.0, is_achievable=True)

    hours_remaining = required_hours - actual_hours
    if not is_currently_working:
        return AchievementProjection(
            will_achieve_at=None, hours_remaining=hours_remaining, is_achievable=False
        )

    if isinstance(last_in_time, datetime):
        anchor: datetime | None = ensure_aware(last_in_time, zone)
    else:
        anchor = parse_instant(last_in_time)
    if anchor is None:
        return AchievementProjection(
            will_achieve_at=None, hours_remaining=hours_remaining, is_achievable=False
        )

    will_achieve_at = (anchor + timedelta(hours=hours_remaining)).astimezone(zone)
    return AchievementProjection(
        will_achieve_at=will_achieve_at, hours_remaining=hours_remaining, is_achievable=True
    )
