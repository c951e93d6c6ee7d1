from workhours.projection import project_achievement

from conftest import ist

DAY = "2024-05-06"
NOW = ist(DAY, "15:00:00")


def test_projection_is_anchored_to_last_in(tz):
    projection = project_achievement(5, 8, True, ist(DAY, "14:00:00"), NOW, tz=tz)

    assert projection.will_achieve_at == ist(DAY, "17:00:00")
    assert projection.hours_remaining == 3
    assert projection.is_achievable is True


def test_already_achieved(tz):
    projection = project_achievement(9, 8, True, ist(DAY, "14:00:00"), NOW, tz=tz)

    assert projection.will_achieve_at is None
    assert projection.hours_remaining == 0
    assert projection.is_achievable is True


def test_not_working_cannot_be_projected(tz):
    projection = project_achievement(5, 8, False, None, NOW, tz=tz)

    assert projection.will_achieve_at is None
    assert projection.hours_remaining == 3
    assert projection.is_achievable is False


def test_working_without_last_in_is_not_achievable(tz):
    projection = project_achievement(5, 8, True, None, NOW, tz=tz)

    assert projection.is_achievable is False
    assert projection.will_achieve_at is None


def test_wire_timestamp_anchor_is_utc(tz):
    # 08:30 UTC == 14:00 IST
    projection = project_achievement(5.5, 8, True, "2024-05-06T08:30:00", NOW, tz=tz)

    assert projection.will_achieve_at == ist(DAY, "16:30:00")
    assert projection.will_achieve_at.utcoffset() == ist(DAY, "00:00:00").utcoffset()
