import datetime
from zoneinfo import ZoneInfo

import pytest

from src.core.alarm import Alarm
from src.core.scheduler import (
    format_time_until,
    next_occurrence,
    parse_time_of_day,
    weekday_index,
)


TZ = ZoneInfo("Europe/Vienna")

# Wednesday
REFERENCE = datetime.datetime(2025, 1, 8, 10, 0, tzinfo=TZ)


def _alarm(time_of_day="07:00", days=()):
    hour, minute = parse_time_of_day(time_of_day)
    return Alarm(id="a1", hour=hour, minute=minute, days=frozenset(days))


def test_weekday_index_starts_on_sunday():
    assert weekday_index(datetime.date(2025, 1, 5)) == 0  # Sunday
    assert weekday_index(datetime.date(2025, 1, 6)) == 1  # Monday
    assert weekday_index(datetime.date(2025, 1, 11)) == 6  # Saturday
    assert weekday_index(REFERENCE) == 3


def test_one_shot_later_today():
    target = next_occurrence(_alarm("11:30"), REFERENCE)
    assert target == datetime.datetime(2025, 1, 8, 11, 30, tzinfo=TZ)


def test_one_shot_already_passed_rolls_to_tomorrow():
    target = next_occurrence(_alarm("09:59"), REFERENCE)
    assert target == datetime.datetime(2025, 1, 9, 9, 59, tzinfo=TZ)


def test_one_shot_exactly_now_is_not_returned():
    target = next_occurrence(_alarm("10:00"), REFERENCE)
    assert target == datetime.datetime(2025, 1, 9, 10, 0, tzinfo=TZ)


def test_repeating_today_when_time_is_still_ahead():
    target = next_occurrence(_alarm("18:00", days={3}), REFERENCE)
    assert target == datetime.datetime(2025, 1, 8, 18, 0, tzinfo=TZ)


def test_repeating_picks_next_selected_weekday():
    # Monday and Friday selected, reference is Wednesday
    target = next_occurrence(_alarm("07:00", days={1, 5}), REFERENCE)
    assert target == datetime.datetime(2025, 1, 10, 7, 0, tzinfo=TZ)


def test_repeating_wraps_over_the_weekend():
    saturday_evening = datetime.datetime(2025, 1, 11, 22, 0, tzinfo=TZ)
    target = next_occurrence(_alarm("06:30", days={1}), saturday_evening)
    assert target == datetime.datetime(2025, 1, 13, 6, 30, tzinfo=TZ)


def test_only_todays_weekday_and_time_passed_returns_next_week():
    target = next_occurrence(_alarm("09:00", days={3}), REFERENCE)
    assert target == datetime.datetime(2025, 1, 15, 9, 0, tzinfo=TZ)
    assert (target - REFERENCE) < datetime.timedelta(days=7)


def test_only_todays_weekday_exactly_now_returns_next_week():
    target = next_occurrence(_alarm("10:00", days={3}), REFERENCE)
    assert target == datetime.datetime(2025, 1, 15, 10, 0, tzinfo=TZ)


def test_unreachable_weekday_set_yields_none():
    alarm = Alarm(id="broken", hour=7, minute=0, days=frozenset({9}))
    assert next_occurrence(alarm, REFERENCE) is None


def test_result_keeps_reference_timezone():
    utc_reference = REFERENCE.astimezone(datetime.timezone.utc)
    target = next_occurrence(_alarm("11:30"), utc_reference)
    assert target.tzinfo is datetime.timezone.utc


def test_inactive_flag_is_ignored_by_the_calculation():
    alarm = _alarm("11:30").with_active(False)
    assert next_occurrence(alarm, REFERENCE) == datetime.datetime(2025, 1, 8, 11, 30, tzinfo=TZ)


@pytest.mark.parametrize("days", [(), (0,), (1, 2, 3, 4, 5), (0, 6), tuple(range(7))])
@pytest.mark.parametrize("minutes_offset", [-61, -1, 0, 1, 59])
def test_next_occurrence_is_strictly_after_and_within_a_week(days, minutes_offset):
    reference = REFERENCE + datetime.timedelta(minutes=minutes_offset)
    target = next_occurrence(_alarm("10:00", days=days), reference)
    assert target is not None
    assert target > reference
    assert target - reference <= datetime.timedelta(days=7)
    assert (target.hour, target.minute) == (10, 0)
    if days:
        assert weekday_index(target) in days


@pytest.mark.parametrize("value,expected", [
    ("07:05", (7, 5)),
    ("7:05", (7, 5)),
    ("23:59", (23, 59)),
    ("24:00", None),
    ("12:60", None),
    ("noon", None),
    (None, None),
])
def test_parse_time_of_day(value, expected):
    assert parse_time_of_day(value) == expected


def test_format_time_until():
    now = REFERENCE
    assert format_time_until(now + datetime.timedelta(minutes=5), now) == "in 5m"
    assert format_time_until(now + datetime.timedelta(hours=2, minutes=3), now) == "in 2h 3m"
    assert format_time_until(now + datetime.timedelta(days=1, hours=1), now) == "in 1 day, 1h 0m"
    assert format_time_until(now - datetime.timedelta(minutes=1), now) == "Alarm time has passed"


def test_repeating_skips_to_next_listed_day():
    # Monday and Wednesday at 10:00, reference Tuesday 09:00
    tuesday = datetime.datetime(2025, 1, 7, 9, 0, tzinfo=TZ)
    target = next_occurrence(_alarm("10:00", days={1, 3}), tuesday)
    assert target == datetime.datetime(2025, 1, 8, 10, 0, tzinfo=TZ)
