"""
Business-hours arithmetic for an organization's local day
─────────────────────────────────────────────────────────
Everything here is pure: no database and no clock reads unless a ``now`` is
passed in. Every computation takes the organization's IANA zone explicitly;
nothing relies on the server's local zone.

✔ resolve_day_hours      – weekday hours of a date, in the org's zone
✔ generate_slots         – candidate start times inside a window
✔ validate_booking_time  – does [start, start+duration) fit the window
✔ ensure_timezone_offset – pin naive ISO strings to the org's offset
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Union, List, Tuple
from zoneinfo import ZoneInfo

import dateparser  # type: ignore
from babel.dates import format_date, format_datetime  # type: ignore

from app.config.constants import WEEKDAYS
from app.schemas.schedule import DayHours, OrganizationSchedule

logger = logging.getLogger(__name__)

OUTSIDE_BUSINESS_HOURS = "outside_business_hours"
VOICE_LOCALE = "en_US"

_EXPLICIT_OFFSET_RE = re.compile(r"(?:[Zz]|[+-]\d{2}:\d{2})$")
_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})$")

DayLike = Union[date, datetime, str]


# --- Parsing helpers ---
def parse_iso_datetime(value: str) -> datetime:
    # datetime.fromisoformat only learned "Z" in 3.11
    if value[-1:] in ("Z", "z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def hhmm_to_minutes(value) -> Optional[int]:
    """'09:30' -> 570. Anything that is not a valid HH:MM gives None."""
    if not isinstance(value, str):
        return None
    match = _HHMM_RE.match(value.strip())
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 24 or minutes > 59 or (hours == 24 and minutes):
        return None
    return hours * 60 + minutes


def local_date(day: DayLike, tz_name: str) -> date:
    """
    The calendar date ``day`` refers to in the organization's zone.

    Aware datetimes (and ISO strings carrying an offset) are converted into
    the zone first; naive values are already local wall-clock.
    """
    if isinstance(day, str):
        day = day.strip()
        if len(day) == 10:
            return date.fromisoformat(day)
        day = parse_iso_datetime(day)
    if isinstance(day, datetime):
        if day.tzinfo is not None:
            return day.astimezone(ZoneInfo(tz_name)).date()
        return day.date()
    return day


def weekday_name(day: date, tz_name: str) -> str:
    # Evaluated at local noon, clear of any DST jump around midnight
    local_noon = datetime.combine(day, time(12, 0), tzinfo=ZoneInfo(tz_name))
    return WEEKDAYS[local_noon.weekday()]


# --- Schedule resolver ---
def resolve_day_hours(
    schedule: Optional[OrganizationSchedule], day: DayLike
) -> Optional[DayHours]:
    """
    Return the opening window for ``day`` in the organization's time zone.

    Args:
        schedule: The organization's schedule, or None when none is configured.
        day: A calendar date, an ISO string, or a datetime. Aware values are
            converted to the organization's zone before the weekday is taken.

    Returns:
        DayHours(open, close) in minutes since local midnight, or None when
        no schedule is configured or that weekday is closed.
    """
    if schedule is None or not schedule.has_business_hours:
        return None

    the_date = local_date(day, schedule.timezone)
    day_name = weekday_name(the_date, schedule.timezone)
    hours = schedule.business_hours.get(day_name)
    if not hours or not isinstance(hours, dict):
        return None

    open_minutes = hhmm_to_minutes(hours.get("open"))
    close_minutes = hhmm_to_minutes(hours.get("close"))
    if open_minutes is None or close_minutes is None:
        logger.warning(
            f"Malformed business hours for {day_name}: {hours!r}. Treating the day as closed."
        )
        return None

    return DayHours(open_minutes, close_minutes)


# --- Slot generator ---
def generate_slots(
    day: Union[date, str], open_minutes: int, close_minutes: int, duration_minutes: int
) -> List[str]:
    """Local 'YYYY-MM-DDTHH:MM:00' starts from open, every duration, ending by close."""
    if duration_minutes <= 0:
        raise ValueError(f"duration_minutes must be positive, got {duration_minutes}")
    day_str = day if isinstance(day, str) else day.isoformat()

    slots: List[str] = []
    start = open_minutes
    while start + duration_minutes <= close_minutes:
        slots.append(f"{day_str}T{start // 60:02d}:{start % 60:02d}:00")
        start += duration_minutes
    return slots


# --- Booking validator ---
def validate_booking_time(
    start_minutes: int, duration_minutes: int, open_minutes: int, close_minutes: int
) -> Optional[str]:
    if start_minutes >= open_minutes and start_minutes + duration_minutes <= close_minutes:
        return None
    return OUTSIDE_BUSINESS_HOURS


# --- Time zone helpers ---
def ensure_timezone_offset(value: str, tz_name: str) -> str:
    """
    Append the organization's UTC offset to a naive ISO datetime string.

    '2026-01-15T10:00:00' in America/New_York -> '2026-01-15T10:00:00-05:00'.
    Strings that already end in Z/z or +HH:MM/-HH:MM come back unchanged, as do
    empty and unparseable strings. An unknown zone name raises
    ``ZoneInfoNotFoundError``.
    """
    if not value or _EXPLICIT_OFFSET_RE.search(value):
        return value

    zone = ZoneInfo(tz_name)
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return value
    if parsed.tzinfo is not None:
        return value

    offset = parsed.replace(tzinfo=zone).utcoffset() or timedelta(0)
    total_minutes = int(offset.total_seconds() // 60)
    sign = "+" if total_minutes >= 0 else "-"
    hours, minutes = divmod(abs(total_minutes), 60)
    return f"{value}{sign}{hours:02d}:{minutes:02d}"


def parse_requested_datetime(value: str, tz_name: str) -> Optional[datetime]:
    """
    Parse the caller's requested start into an aware UTC datetime.

    ISO strings are read first (naive ones are wall-clock in ``tz_name``);
    anything else goes through dateparser with the organization's zone.
    Returns None if nothing sensible comes out.
    """
    if not value:
        return None
    try:
        parsed = parse_iso_datetime(ensure_timezone_offset(value, tz_name))
        if parsed.tzinfo is None:
            # date-only strings ("2026-03-16") parse naive at midnight
            parsed = parsed.replace(tzinfo=ZoneInfo(tz_name))
        return parsed.astimezone(timezone.utc)
    except ValueError:
        pass

    parsed = dateparser.parse(
        value,
        settings={
            "TIMEZONE": tz_name,
            "TO_TIMEZONE": "UTC",
            "RETURN_AS_TIMEZONE_AWARE": True,
            "PREFER_DATES_FROM": "future",
        },
    )
    if parsed is None:
        logger.info(f"Could not parse requested datetime '{value}' (tz={tz_name})")
        return None
    return parsed.astimezone(timezone.utc)


def local_minutes(moment: datetime, tz_name: str) -> Tuple[date, int]:
    """(local date, minutes since local midnight) of an aware instant."""
    local = moment.astimezone(ZoneInfo(tz_name))
    return local.date(), local.hour * 60 + local.minute


def slot_to_utc(slot: str, tz_name: str) -> datetime:
    """'2026-03-16T09:30:00' local wall-clock -> aware UTC datetime."""
    return datetime.fromisoformat(slot).replace(tzinfo=ZoneInfo(tz_name)).astimezone(timezone.utc)


def slot_exists(slot: str, tz_name: str) -> bool:
    """False for wall-clock times skipped by a DST jump (e.g. 02:30 on a spring-forward day)."""
    naive = datetime.fromisoformat(slot)
    round_trip = slot_to_utc(slot, tz_name).astimezone(ZoneInfo(tz_name)).replace(tzinfo=None)
    return round_trip == naive


def local_day_bounds(day: date, tz_name: str) -> Tuple[datetime, datetime]:
    """UTC instants of local midnight at the start of ``day`` and of the next day."""
    zone = ZoneInfo(tz_name)
    start = datetime.combine(day, time(0, 0), tzinfo=zone)
    end = datetime.combine(day + timedelta(days=1), time(0, 0), tzinfo=zone)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


# --- Voice formatting ---
def format_time_of_day(minutes: int) -> str:
    """540 -> '9 AM', 570 -> '9:30 AM', 1020 -> '5 PM'."""
    hours, mins = divmod(minutes, 60)
    period = "PM" if 12 <= hours < 24 else "AM"
    hour12 = hours % 12 or 12
    return f"{hour12} {period}" if mins == 0 else f"{hour12}:{mins:02d} {period}"


def format_spoken_date(day: date) -> str:
    """'Monday, March 16'"""
    return format_date(day, "EEEE, MMMM d", locale=VOICE_LOCALE)


def format_spoken_time(moment: datetime, tz_name: str) -> str:
    """'2:00 PM' in the organization's zone."""
    return format_datetime(moment, "h:mm a", tzinfo=ZoneInfo(tz_name), locale=VOICE_LOCALE)


def format_datetime_for_voice(moment: datetime, tz_name: str) -> Tuple[str, str]:
    """('Monday, March 16', '2:00 PM') for an aware instant, as seen in ``tz_name``."""
    local = moment.astimezone(ZoneInfo(tz_name))
    return format_spoken_date(local.date()), format_spoken_time(moment, tz_name)
