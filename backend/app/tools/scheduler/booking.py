"""
Booking committers
──────────────────
✔ book_internal      – insert straight into appointments; the exclusion
                        constraint decides conflicts
✔ book_via_provider  – create on Cal.com, mirror locally, cancel remotely
                        if the mirror cannot be written

Both return a ToolResult whose message is spoken to the caller as-is.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from uuid import UUID

from app.config.constants import Provider
from app.config.settings import settings
from app.core.exceptions import SlotUnavailableError
from app.db.crud.appointment import create_appointment
from app.db.crud.organization import get_org_schedule
from app.db.session import tool_db_session
from app.schemas.schedule import OrganizationSchedule
from app.schemas.tool_call import ToolResult
from app.tools.calendar.cal_com import CalComBooking, CalComClient, CalComSlotUnavailableError
from app.tools.notifications import AppointmentBookedNotification, dispatch_appointment_booked
from app.tools.scheduler import messages
from app.tools.scheduler.hours import (
    format_datetime_for_voice,
    format_time_of_day,
    local_minutes,
    parse_iso_datetime,
    parse_requested_datetime,
    resolve_day_hours,
    validate_booking_time,
)

logger = logging.getLogger(__name__)

BOOKING_SOURCE = "ai_receptionist"


# --- Helpers ---
def placeholder_email() -> str:
    return f"booking-{uuid.uuid4()}@{settings.placeholder_email_domain}"


def _schedule_defaults(schedule: Optional[OrganizationSchedule]) -> Tuple[str, int]:
    if schedule is None:
        return settings.default_timezone, settings.default_appointment_duration
    return schedule.timezone, schedule.appointment_duration


def business_hours_rejection(
    schedule: OrganizationSchedule, start: datetime, duration_minutes: int
) -> Optional[str]:
    """Spoken rejection if ``start`` does not fit the org's hours, else None."""
    local_day, start_minutes = local_minutes(start, schedule.timezone)
    hours = resolve_day_hours(schedule, local_day)
    if hours is None:
        return messages.CLOSED_ON_DAY
    if validate_booking_time(start_minutes, duration_minutes, hours.open, hours.close):
        return messages.OUTSIDE_HOURS.format(
            open=format_time_of_day(hours.open), close=format_time_of_day(hours.close)
        )
    return None


def _confirmation(start: datetime, tz_name: str, email_supplied: bool) -> str:
    date_str, time_str = format_datetime_for_voice(start, tz_name)
    return messages.BOOKED.format(
        date=date_str,
        time=time_str,
        email_note=messages.BOOKED_EMAIL_NOTE if email_supplied else "",
    )


def _notify(
    organization_id: UUID,
    appointment_id,
    name: str,
    phone: str,
    start: datetime,
    tz_name: str,
    provider: str,
) -> None:
    date_str, time_str = format_datetime_for_voice(start, tz_name)
    try:
        dispatch_appointment_booked(
            AppointmentBookedNotification(
                organization_id=organization_id,
                appointment_id=str(appointment_id) if appointment_id else None,
                caller_name=name,
                caller_phone=phone,
                start_time=start,
                appointment_date=date_str,
                appointment_time=time_str,
                provider=provider,
            )
        )
    except Exception as e:
        # the booking is committed; a notification problem must not change the answer
        logger.error(f"Could not schedule booking notification: {e}", exc_info=True)


def _iso_utc(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


async def _load_schedule(organization_id: UUID) -> Optional[OrganizationSchedule]:
    async with tool_db_session() as db:
        return await get_org_schedule(db, organization_id)


# --- Internal booking ---
async def book_internal(
    organization_id: UUID,
    requested: str,
    name: str,
    phone: str,
    email: Optional[str] = None,
    notes: Optional[str] = None,
) -> ToolResult:
    """
    Book directly into the appointments table.

    The requested time is checked against business hours as observed in the
    organization's zone; then the row is inserted without any availability
    read. A concurrent booking of an overlapping range loses at the exclusion
    constraint and gets the "no longer available" answer.
    """
    try:
        schedule = await _load_schedule(organization_id)
    except Exception as e:
        logger.error(
            f"Booking: schedule lookup failed for organization {organization_id}: {e}",
            exc_info=True,
        )
        return ToolResult(success=False, message=messages.SCHEDULE_UNAVAILABLE)

    tz_name, duration = _schedule_defaults(schedule)
    start = parse_requested_datetime(requested, tz_name)
    if start is None:
        return ToolResult(success=False, message=messages.UNPARSEABLE_DATETIME)
    end = start + timedelta(minutes=duration)

    if schedule is not None and schedule.has_business_hours:
        rejection = business_hours_rejection(schedule, start, duration)
        if rejection:
            logger.info(
                f"Booking: {start.isoformat()} rejected for organization {organization_id} (outside hours)."
            )
            return ToolResult(success=False, message=rejection)
    else:
        logger.info(f"Booking: organization {organization_id} has no business hours; skipping hours check.")

    try:
        async with tool_db_session() as db:
            appointment = await create_appointment(
                db,
                organization_id=organization_id,
                start_time=start,
                end_time=end,
                attendee_name=name,
                attendee_phone=phone,
                attendee_email=email or placeholder_email(),
                notes=notes,
                provider=Provider.INTERNAL.value,
                duration_minutes=duration,
                metadata={"source": BOOKING_SOURCE},
            )
    except SlotUnavailableError:
        return ToolResult(success=False, message=messages.SLOT_TAKEN)
    except Exception as e:
        logger.error(
            f"Booking: failed to insert internal appointment for organization {organization_id}: "
            f"{type(e).__name__} - {e}",
            exc_info=True,
        )
        return ToolResult(success=False, message=messages.BOOKING_FAILED)

    _notify(organization_id, appointment.id, name, phone, start, tz_name, Provider.INTERNAL.value)

    return ToolResult(
        success=True,
        message=_confirmation(start, tz_name, bool(email)),
        data={
            "appointmentId": str(appointment.id),
            "startTime": _iso_utc(start),
            "endTime": _iso_utc(end),
        },
    )


# --- Provider (Cal.com) booking ---
async def _rollback_provider_booking(
    client: CalComClient, booking: CalComBooking, organization_id: UUID
) -> None:
    try:
        await client.cancel_booking(booking.id, "Internal system error - rollback")
        logger.info(f"Booking: rolled back Cal.com booking {booking.id} for organization {organization_id}")
    except Exception as e:
        logger.critical(
            f"Failed to roll back Cal.com booking id={booking.id} uid={booking.uid} for organization "
            f"{organization_id} after local insert failure; manual reconciliation required: {e}",
            exc_info=True,
        )


async def book_via_provider(
    client: CalComClient,
    organization_id: UUID,
    event_type_id: int,
    requested: str,
    name: str,
    phone: str,
    email: Optional[str] = None,
    notes: Optional[str] = None,
) -> ToolResult:
    """
    Book on Cal.com, then mirror the booking locally.

    If the mirror insert fails the Cal.com booking is cancelled again so no
    orphan is left behind; a failed cancel is logged as critical. The caller
    only hears "booked" once both sides hold the appointment.
    """
    try:
        schedule = await _load_schedule(organization_id)
    except Exception as e:
        logger.error(
            f"Booking: schedule lookup failed for organization {organization_id}: {e}",
            exc_info=True,
        )
        return ToolResult(success=False, message=messages.SCHEDULE_UNAVAILABLE)

    tz_name, duration = _schedule_defaults(schedule)
    start = parse_requested_datetime(requested, tz_name)
    if start is None:
        return ToolResult(success=False, message=messages.UNPARSEABLE_DATETIME)

    booking_email = email or placeholder_email()

    # 1. create on Cal.com
    try:
        booking = await client.create_booking(
            event_type_id=event_type_id,
            start=_iso_utc(start),
            name=name,
            email=booking_email,
            phone=phone,
            notes=notes,
            metadata={"source": BOOKING_SOURCE, "organizationId": str(organization_id)},
            time_zone=tz_name,
        )
    except CalComSlotUnavailableError:
        logger.info(f"Booking: Cal.com reports {start.isoformat()} taken for organization {organization_id}")
        return ToolResult(success=False, message=messages.SLOT_TAKEN)
    except Exception as e:
        logger.error(
            f"Booking: Cal.com booking failed for organization {organization_id}: {type(e).__name__} - {e}",
            exc_info=True,
        )
        return ToolResult(success=False, message=messages.BOOKING_FAILED)

    booked_start = _provider_time(booking.start_time) or start
    booked_end = _provider_time(booking.end_time) or booked_start + timedelta(minutes=duration)

    # 2. mirror locally, compensate on failure
    try:
        async with tool_db_session() as db:
            appointment = await create_appointment(
                db,
                organization_id=organization_id,
                start_time=booked_start,
                end_time=booked_end,
                attendee_name=name,
                attendee_phone=phone,
                attendee_email=booking_email,
                notes=notes,
                provider=Provider.CAL_COM.value,
                external_id=booking.uid,
                duration_minutes=int((booked_end - booked_start).total_seconds() // 60),
                metadata={
                    "calComBookingId": booking.id,
                    "eventTypeId": event_type_id,
                    "source": BOOKING_SOURCE,
                },
            )
    except Exception as e:
        logger.error(
            f"Booking: failed to record Cal.com booking {booking.id} locally for organization "
            f"{organization_id}, rolling back: {type(e).__name__} - {e}",
            exc_info=True,
        )
        await _rollback_provider_booking(client, booking, organization_id)
        if isinstance(e, SlotUnavailableError):
            return ToolResult(success=False, message=messages.SLOT_TAKEN)
        return ToolResult(success=False, message=messages.BOOKING_FAILED)

    _notify(organization_id, appointment.id, name, phone, booked_start, tz_name, Provider.CAL_COM.value)

    return ToolResult(
        success=True,
        message=_confirmation(booked_start, tz_name, bool(email)),
        data={
            "bookingId": booking.id,
            "bookingUid": booking.uid,
            "appointmentId": str(appointment.id),
            "startTime": _iso_utc(booked_start),
            "endTime": _iso_utc(booked_end),
        },
    )


def _provider_time(raw: Optional[str]) -> Optional[datetime]:
    if not raw:
        return None
    try:
        moment = parse_iso_datetime(raw)
    except ValueError:
        logger.warning(f"Booking: unparseable Cal.com timestamp {raw!r}")
        return None
    return moment if moment.tzinfo is not None else None
