# tests/test_hours.py
from datetime import date, datetime, timezone

import pytest
from zoneinfo import ZoneInfoNotFoundError

from app.schemas.schedule import DayHours, OrganizationSchedule
from app.tools.scheduler.hours import (
    OUTSIDE_BUSINESS_HOURS,
    ensure_timezone_offset,
    format_datetime_for_voice,
    format_time_of_day,
    generate_slots,
    hhmm_to_minutes,
    parse_requested_datetime,
    resolve_day_hours,
    slot_exists,
    validate_booking_time,
)


###############
# Slot generation
###############
def test_generate_slots_full_day_half_hours():
    slots = generate_slots("2026-03-15", 540, 1020, 30)
    assert len(slots) == 16
    assert slots[0] == "2026-03-15T09:00:00"
    assert slots[-1] == "2026-03-15T16:30:00"


@pytest.mark.parametrize(
    "open_m, close_m, duration, expected",
    [
        (540, 1020, 60, 8),
        (540, 1020, 15, 32),
        (540, 570, 30, 1),
        (540, 560, 30, 0),
        (540, 1020, 45, 10),
        (540, 1020, 480, 1),
        (540, 1020, 481, 0),
    ],
)
def test_generate_slots_count_and_spacing(open_m, close_m, duration, expected):
    slots = generate_slots(date(2026, 3, 16), open_m, close_m, duration)
    assert len(slots) == expected == max(0, (close_m - open_m) // duration)
    minutes = [int(s[11:13]) * 60 + int(s[14:16]) for s in slots]
    if minutes:
        assert minutes[0] == open_m
        assert all(b - a == duration for a, b in zip(minutes, minutes[1:]))
        assert minutes[-1] + duration <= close_m


def test_generate_slots_leaves_trailing_gap():
    # 9:00-10:50 with 30 min: last slot 10:00, 20 minutes unused
    assert generate_slots("2026-03-16", 540, 650, 30)[-1] == "2026-03-16T10:00:00"


def test_generate_slots_rejects_non_positive_duration():
    with pytest.raises(ValueError):
        generate_slots("2026-03-16", 540, 1020, 0)


###############
# Booking-time validation
###############
@pytest.mark.parametrize(
    "start, duration, expected",
    [
        (540, 30, None),  # exactly at open
        (990, 30, None),  # ends exactly at close
        (600, 60, None),
        (539, 30, OUTSIDE_BUSINESS_HOURS),  # one minute early
        (991, 30, OUTSIDE_BUSINESS_HOURS),  # ends one minute late
        (1005, 30, OUTSIDE_BUSINESS_HOURS),
        (1020, 30, OUTSIDE_BUSINESS_HOURS),
        (480, 30, OUTSIDE_BUSINESS_HOURS),
    ],
)
def test_validate_booking_time(start, duration, expected):
    assert validate_booking_time(start, duration, 540, 1020) == expected


###############
# Schedule resolution
###############
def _sydney_schedule():
    return OrganizationSchedule(
        timezone="Australia/Sydney",
        business_hours={
            "sunday": {"open": "10:00", "close": "14:00"},
            "monday": None,
            "tuesday": {"open": "09:00", "close": "17:00"},
        },
    )


def test_weekday_is_resolved_in_org_timezone():
    # Sunday 22:00 UTC is already Monday 09:00 in Sydney, and Monday is closed
    sunday_night_utc = datetime(2026, 3, 15, 22, 0, tzinfo=timezone.utc)
    assert resolve_day_hours(_sydney_schedule(), sunday_night_utc) is None
    assert resolve_day_hours(_sydney_schedule(), "2026-03-15T22:00:00Z") is None


def test_plain_date_uses_that_calendar_day():
    assert resolve_day_hours(_sydney_schedule(), date(2026, 3, 15)) == DayHours(600, 840)
    assert resolve_day_hours(_sydney_schedule(), "2026-03-17") == DayHours(540, 1020)


def test_negative_offset_zone_rolls_back_a_day(ny_schedule):
    # Tuesday 02:00 UTC is Monday 22:00 in New York
    assert resolve_day_hours(ny_schedule, datetime(2026, 3, 17, 2, 0, tzinfo=timezone.utc)) == DayHours(540, 1020)


def test_no_schedule_or_missing_day_is_closed():
    assert resolve_day_hours(None, date(2026, 3, 16)) is None
    empty = OrganizationSchedule(timezone="UTC", business_hours=None)
    assert resolve_day_hours(empty, date(2026, 3, 16)) is None
    partial = OrganizationSchedule(timezone="UTC", business_hours={"friday": {"open": "09:00"}})
    assert resolve_day_hours(partial, date(2026, 3, 20)) is None


def test_malformed_hours_are_treated_as_closed():
    schedule = OrganizationSchedule(
        timezone="UTC", business_hours={"monday": {"open": "nine", "close": "17:00"}}
    )
    assert resolve_day_hours(schedule, date(2026, 3, 16)) is None


def test_hhmm_to_minutes():
    assert hhmm_to_minutes("09:30") == 570
    assert hhmm_to_minutes("24:00") == 1440
    assert hhmm_to_minutes("25:00") is None
    assert hhmm_to_minutes(None) is None


###############
# Time zone offsets
###############
@pytest.mark.parametrize(
    "value, tz_name",
    [
        ("2026-02-18T10:00:00Z", "America/New_York"),
        ("2026-02-18T10:00:00z", "America/New_York"),
        ("2026-02-18T10:00:00+11:00", "America/New_York"),
        ("2026-02-18T10:00:00-05:00", "Australia/Sydney"),
    ],
)
def test_explicit_offsets_are_left_alone(value, tz_name):
    assert ensure_timezone_offset(value, tz_name) == value


@pytest.mark.parametrize(
    "value, tz_name, expected",
    [
        ("2026-06-15T12:00:00", "UTC", "2026-06-15T12:00:00+00:00"),
        ("2026-01-15T10:00:00", "America/New_York", "2026-01-15T10:00:00-05:00"),
        ("2026-07-15T10:00:00", "America/New_York", "2026-07-15T10:00:00-04:00"),
        ("2026-07-15T10:00:00", "Australia/Sydney", "2026-07-15T10:00:00+10:00"),
        ("2026-02-18T10:00:00", "Australia/Sydney", "2026-02-18T10:00:00+11:00"),
        ("2026-06-15T14:00:00", "Asia/Kolkata", "2026-06-15T14:00:00+05:30"),
        ("2026-06-15T14:00:00", "Asia/Kathmandu", "2026-06-15T14:00:00+05:45"),
        ("2026-01-31T23:00:00", "Australia/Sydney", "2026-01-31T23:00:00+11:00"),
        ("2026-03-01T01:00:00", "America/Los_Angeles", "2026-03-01T01:00:00-08:00"),
        ("2025-12-31T20:00:00", "Australia/Sydney", "2025-12-31T20:00:00+11:00"),
    ],
)
def test_naive_values_get_org_offset(value, tz_name, expected):
    assert ensure_timezone_offset(value, tz_name) == expected


def test_unparseable_and_empty_values_come_back_unchanged():
    assert ensure_timezone_offset("not-a-date", "America/New_York") == "not-a-date"
    assert ensure_timezone_offset("", "America/New_York") == ""


def test_unknown_timezone_raises():
    with pytest.raises(ZoneInfoNotFoundError):
        ensure_timezone_offset("2026-02-18T10:00:00", "Invalid/Timezone")


###############
# Parsing & voice formatting
###############
def test_parse_requested_datetime_treats_naive_as_org_local():
    parsed = parse_requested_datetime("2026-03-16T14:00:00", "America/New_York")
    assert parsed == datetime(2026, 3, 16, 18, 0, tzinfo=timezone.utc)


def test_parse_requested_datetime_keeps_explicit_offset():
    parsed = parse_requested_datetime("2026-03-16T14:00:00Z", "Australia/Sydney")
    assert parsed == datetime(2026, 3, 16, 14, 0, tzinfo=timezone.utc)


def test_parse_requested_datetime_gives_none_for_gibberish():
    assert parse_requested_datetime("zzzz qqqq", "America/New_York") is None
    assert parse_requested_datetime("", "America/New_York") is None


@pytest.mark.parametrize(
    "minutes, expected",
    [(540, "9 AM"), (570, "9:30 AM"), (720, "12 PM"), (1020, "5 PM"), (0, "12 AM"), (1305, "9:45 PM")],
)
def test_format_time_of_day(minutes, expected):
    assert format_time_of_day(minutes) == expected


def test_format_datetime_for_voice_uses_org_zone():
    moment = datetime(2026, 3, 16, 18, 0, tzinfo=timezone.utc)
    assert format_datetime_for_voice(moment, "America/New_York") == ("Monday, March 16", "2:00 PM")
    assert format_datetime_for_voice(moment, "Australia/Sydney") == ("Tuesday, March 17", "5:00 AM")


@pytest.mark.parametrize(
    "slot,exists",
    [
        ("2026-03-08T01:30:00", True),
        ("2026-03-08T02:00:00", False),  # skipped by spring-forward
        ("2026-03-08T02:30:00", False),
        ("2026-03-08T03:00:00", True),
        ("2026-11-01T01:30:00", True),  # repeated hour still exists
    ],
)
def test_slot_exists_across_dst_transitions(slot, exists):
    assert slot_exists(slot, "America/New_York") is exists
