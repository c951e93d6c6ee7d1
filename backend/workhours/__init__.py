"""Work-hours accounting engine.

Pairs raw IN/OUT swipe events into work sessions, rolls them up into
day/week/month statistics and projects when the required hours are reached.
"""

from .aggregate import compute_enhanced_period, count_weekdays, month_bounds, week_bounds
from .models import (
    AchievementProjection,
    AttendanceStatus,
    DailyResult,
    Direction,
    Period,
    PeriodInputs,
    PeriodStats,
    PeriodTotal,
    SwipeEvent,
    SwipePair,
)
from .pairing import compute_daily, create_swipe_pairs, normalize_swipes
from .projection import project_achievement

__all__ = [
    "AchievementProjection",
    "AttendanceStatus",
    "DailyResult",
    "Direction",
    "Period",
    "PeriodInputs",
    "PeriodStats",
    "PeriodTotal",
    "SwipeEvent",
    "SwipePair",
    "compute_daily",
    "compute_enhanced_period",
    "count_weekdays",
    "create_swipe_pairs",
    "month_bounds",
    "normalize_swipes",
    "project_achievement",
    "week_bounds",
]
