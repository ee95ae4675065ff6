import logging
from typing import Optional
from uuid import UUID

from app.config.constants import Provider
from app.config.settings import settings
from app.db.crud.appointment import get_next_appointment_by_phone, mark_appointment_cancelled
from app.db.crud.organization import get_org_schedule
from app.db.models.appointment import AppointmentModel
from app.db.session import tool_db_session
from app.schemas.tool_call import ToolResult
from app.tools.calendar.cal_com import get_calendar_provider
from app.tools.scheduler import messages
from app.tools.scheduler.hours import format_datetime_for_voice

logger = logging.getLogger(__name__)

DEFAULT_CANCEL_REASON = "Cancelled by caller"


async def _cancel_remote_booking(
    organization_id: UUID, appointment: AppointmentModel, reason: Optional[str]
) -> None:
    """Best effort: the local row is cancelled whatever happens here."""
    booking_id = (appointment.metadata_ or {}).get("calComBookingId")
    try:
        async with tool_db_session() as db:
            provider = await get_calendar_provider(db, organization_id)
    except Exception as e:
        logger.error(
            f"Cancel: could not load calendar integration for organization {organization_id}: {e}",
            exc_info=True,
        )
        provider = None

    if provider is None or not booking_id:
        logger.warning(
            f"Cannot cancel Cal.com booking for appointment {appointment.id} "
            f"(external_id={appointment.external_id}, has_client={provider is not None}, "
            f"has_booking_id={bool(booking_id)}); cancelling locally only."
        )
        return

    client, _ = provider
    try:
        await client.cancel_booking(int(booking_id), reason or DEFAULT_CANCEL_REASON)
    except Exception as e:
        logger.error(
            f"Cancel: Cal.com cancel of booking {booking_id} failed for organization "
            f"{organization_id}; local and remote state now disagree: {e}",
            exc_info=True,
        )


async def cancel_appointment(
    organization_id: UUID, phone: str, reason: Optional[str] = None
) -> ToolResult:
    """
    Cancel the caller's next upcoming appointment, found by phone number.

    Provider-backed appointments are cancelled on the provider first; the
    local row is marked cancelled regardless of that outcome.
    """
    try:
        async with tool_db_session() as db:
            appointment = await get_next_appointment_by_phone(db, organization_id, phone)
    except Exception as e:
        logger.error(
            f"Cancel: appointment lookup failed for organization {organization_id}: {e}",
            exc_info=True,
        )
        return ToolResult(success=False, message=messages.CANCEL_LOOKUP_FAILED)

    if appointment is None:
        logger.info(f"Cancel: no upcoming appointment for organization {organization_id} and given phone.")
        return ToolResult(success=False, message=messages.CANCEL_NOT_FOUND)

    if appointment.external_id or appointment.provider == Provider.CAL_COM.value:
        await _cancel_remote_booking(organization_id, appointment, reason)

    try:
        async with tool_db_session() as db:
            updated = await mark_appointment_cancelled(db, appointment.id, reason)
    except Exception as e:
        logger.error(
            f"Cancel: failed to update appointment {appointment.id} locally: {e}", exc_info=True
        )
        return ToolResult(success=False, message=messages.CANCEL_FAILED)
    if not updated:
        # a concurrent request cancelled it first; the outcome is the same
        logger.info(f"Cancel: appointment {appointment.id} was already cancelled.")

    tz_name = settings.default_timezone
    try:
        async with tool_db_session() as db:
            schedule = await get_org_schedule(db, organization_id)
        if schedule is not None:
            tz_name = schedule.timezone
    except Exception as e:
        logger.warning(f"Cancel: schedule lookup failed, speaking time in {tz_name}: {e}")

    date_str, time_str = format_datetime_for_voice(appointment.start_time, tz_name)
    return ToolResult(
        success=True,
        message=messages.CANCELLED.format(date=date_str, time=time_str),
        data={"appointmentId": str(appointment.id)},
    )
