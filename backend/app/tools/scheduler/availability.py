"""
Free-slot computation for one organization-local day.

Candidate slots come from the business hours; booked confirmed/pending
appointments are subtracted with a half-open overlap test. Storage errors are
not caught here: the tool handler turns them into an apology, never into
"no availability".
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple
from uuid import UUID
from zoneinfo import ZoneInfo

from app.config.constants import MAX_SPOKEN_SLOTS
from app.config.settings import settings
from app.db.crud.appointment import get_active_appointments_in_range
from app.db.crud.organization import get_org_schedule
from app.db.models.appointment import AppointmentModel
from app.db.session import tool_db_session
from app.tools.calendar.cal_com import CalComClient
from app.tools.scheduler import messages
from app.tools.scheduler.hours import (
    parse_iso_datetime,
    format_spoken_date,
    format_spoken_time,
    generate_slots,
    local_day_bounds,
    resolve_day_hours,
    slot_exists,
    slot_to_utc,
)

logger = logging.getLogger(__name__)

Interval = Tuple[datetime, datetime]


class AvailabilityResult(NamedTuple):
    slots: List[str]  # local wall-clock "YYYY-MM-DDTHH:MM:00"
    voice_message: str
    timezone: str


def booked_interval(appointment: AppointmentModel, fallback_duration: int) -> Interval:
    """[start, end) of a booking; a missing end comes from its own or the org's duration."""
    start = appointment.start_time
    end = appointment.end_time
    if end is None:
        minutes = appointment.duration_minutes or fallback_duration
        end = start + timedelta(minutes=minutes)
    return start, end


def filter_free_slots(
    candidates: Sequence[str],
    booked: Iterable[Interval],
    tz_name: str,
    duration_minutes: int,
) -> List[str]:
    booked = list(booked)
    length = timedelta(minutes=duration_minutes)
    free = []
    for slot in candidates:
        slot_start = slot_to_utc(slot, tz_name)
        slot_end = slot_start + length
        if any(slot_start < appt_end and slot_end > appt_start for appt_start, appt_end in booked):
            continue
        free.append(slot)
    return free


def format_availability_for_voice(day: date, starts: Sequence[datetime], tz_name: str) -> str:
    """'On Monday, March 16, I have openings at 9:00 AM, 9:30 AM and 12 more. ...'"""
    if not starts:
        return messages.NO_AVAILABILITY
    shown = [format_spoken_time(s, tz_name) for s in starts[:MAX_SPOKEN_SLOTS]]
    extra = len(starts) - MAX_SPOKEN_SLOTS
    more = f" and {extra} more" if extra > 0 else ""
    return messages.AVAILABLE_SLOTS.format(
        date=format_spoken_date(day), times=", ".join(shown), more=more
    )


async def check_availability(organization_id: UUID, day: date) -> AvailabilityResult:
    """
    Free slots of an internally-booked organization for a local calendar date.

    Args:
        organization_id (UUID): The organization.
        day (date): Calendar date in the organization's time zone.

    Returns:
        AvailabilityResult: Free slots plus the sentence to speak.

    Raises:
        Exception: Any storage failure, unchanged.
    """
    async with tool_db_session() as db:
        schedule = await get_org_schedule(db, organization_id)
        if schedule is None or not schedule.has_business_hours:
            tz_name = schedule.timezone if schedule else settings.default_timezone
            logger.info(f"Availability: organization {organization_id} has no business hours configured.")
            return AvailabilityResult([], messages.NO_AVAILABILITY, tz_name)

        tz_name = schedule.timezone
        hours = resolve_day_hours(schedule, day)
        if hours is None:
            logger.info(f"Availability: organization {organization_id} is closed on {day}.")
            return AvailabilityResult([], messages.CLOSED_ON_DAY, tz_name)

        duration = schedule.appointment_duration
        candidates = [
            s for s in generate_slots(day, hours.open, hours.close, duration) if slot_exists(s, tz_name)
        ]
        range_start, range_end = local_day_bounds(day, tz_name)
        appointments = await get_active_appointments_in_range(
            db, organization_id, range_start, range_end
        )

    booked = [booked_interval(a, duration) for a in appointments]
    free = filter_free_slots(candidates, booked, tz_name, duration)
    logger.info(
        f"Availability: organization {organization_id} on {day}: "
        f"{len(free)}/{len(candidates)} slots free ({len(booked)} booked)."
    )
    starts = [slot_to_utc(s, tz_name) for s in free]
    return AvailabilityResult(free, format_availability_for_voice(day, starts, tz_name), tz_name)


async def check_availability_via_provider(
    client: CalComClient,
    event_type_id: int,
    day: date,
    tz_name: str,
) -> AvailabilityResult:
    """Same contract as ``check_availability``, answered by Cal.com's /slots."""
    range_start, range_end = local_day_bounds(day, tz_name)
    days = await client.get_availability(
        event_type_id,
        range_start.isoformat().replace("+00:00", "Z"),
        range_end.isoformat().replace("+00:00", "Z"),
    )
    zone = ZoneInfo(tz_name)
    starts: List[datetime] = []
    for provider_day in days:
        for raw in provider_day.times:
            moment = _parse_provider_time(raw)
            if moment is not None and moment.astimezone(zone).date() == day:
                starts.append(moment)
    starts.sort()
    slots = [s.astimezone(zone).strftime("%Y-%m-%dT%H:%M:00") for s in starts]
    return AvailabilityResult(slots, format_availability_for_voice(day, starts, tz_name), tz_name)


def _parse_provider_time(raw: str) -> Optional[datetime]:
    try:
        moment = parse_iso_datetime(raw)
    except (TypeError, ValueError):
        logger.warning(f"Availability: ignoring unparseable Cal.com slot time {raw!r}")
        return None
    if moment.tzinfo is None:
        return None
    return moment
