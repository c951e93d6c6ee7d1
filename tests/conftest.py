from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from workhours.models import Direction, SwipeEvent

IST = ZoneInfo("Asia/Kolkata")


def ist(day: str, clock: str) -> datetime:
    return datetime.strptime(f"{day} {clock}", "%Y-%m-%d %H:%M:%S").replace(tzinfo=IST)


def swipe(day: str, clock: str, direction: str) -> SwipeEvent:
    return SwipeEvent(timestamp=ist(day, clock), direction=Direction(direction))


@pytest.fixture
def tz():
    return IST


@pytest.fixture
def workday_swipes():
    return [
        swipe("2024-05-06", "09:00:00", "IN"),
        swipe("2024-05-06", "13:00:00", "OUT"),
        swipe("2024-05-06", "14:00:00", "IN"),
        swipe("2024-05-06", "18:30:15", "OUT"),
    ]
