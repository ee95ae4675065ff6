"""
Voice-agent scheduling tools
────────────────────────────
Everything here is invoked by the voice server through
``POST /internal/tool-call`` and answers with a ToolResult whose message is
spoken verbatim.

✔ book_appointment     – book a time (Cal.com if connected, else internal)
✔ check_availability   – read out free times for a date
✔ cancel_appointment   – cancel the caller's next appointment by phone
✔ get_current_datetime – today's date and time in the business time zone
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Optional
from uuid import UUID
from zoneinfo import ZoneInfo

from babel.dates import format_date  # type: ignore

from app.config.constants import MAX_NAME_LENGTH, MAX_NOTES_LENGTH, MAX_REASON_LENGTH, ToolName
from app.config.settings import settings
from app.db.crud.organization import get_org_schedule
from app.db.session import tool_db_session
from app.schemas.tool_call import (
    BookAppointmentArgs,
    CancelAppointmentArgs,
    CheckAvailabilityArgs,
    ToolResult,
)
from app.tools.calendar.cal_com import get_calendar_provider, parse_event_type_id
from app.tools.scheduler import messages
from app.tools.scheduler.availability import check_availability, check_availability_via_provider
from app.tools.scheduler.booking import book_internal, book_via_provider
from app.tools.scheduler.cancellation import cancel_appointment
from app.tools.scheduler.hours import format_spoken_time, parse_requested_datetime
from app.tools.scheduler.validation import (
    is_valid_email,
    is_valid_phone_number,
    normalize_phone,
    sanitize_string,
)

logger = logging.getLogger(__name__)


async def handle_book_appointment(organization_id: UUID, args: BookAppointmentArgs) -> ToolResult:
    if not args.datetime:
        return ToolResult(success=False, message=messages.MISSING_DATETIME)
    if not args.name:
        return ToolResult(success=False, message=messages.MISSING_NAME)
    if not args.phone:
        return ToolResult(success=False, message=messages.MISSING_PHONE)
    if not is_valid_phone_number(args.phone):
        return ToolResult(success=False, message=messages.INVALID_PHONE)
    if args.email and not is_valid_email(args.email):
        return ToolResult(success=False, message=messages.INVALID_EMAIL)

    name = sanitize_string(args.name, MAX_NAME_LENGTH)
    if not name:
        return ToolResult(success=False, message=messages.MISSING_NAME)
    notes = sanitize_string(args.notes, MAX_NOTES_LENGTH) or None
    phone = normalize_phone(args.phone)

    try:
        async with tool_db_session() as db:
            provider = await get_calendar_provider(db, organization_id)
    except Exception as e:
        logger.error(
            f"book_appointment: calendar integration lookup failed for organization {organization_id}: {e}",
            exc_info=True,
        )
        return ToolResult(success=False, message=messages.SCHEDULE_UNAVAILABLE)

    if provider is None:
        logger.info(f"book_appointment: using built-in booking for organization {organization_id}")
        return await book_internal(
            organization_id, args.datetime, name, phone, args.email, notes
        )

    client, integration = provider
    event_type_id = parse_event_type_id(integration)
    if event_type_id is None:
        logger.error(
            f"book_appointment: Cal.com integration {integration.id} of organization "
            f"{organization_id} has no usable event type id ({integration.calendar_id!r})"
        )
        return ToolResult(success=False, message=messages.CALENDAR_NOT_SET_UP)

    return await book_via_provider(
        client, organization_id, event_type_id, args.datetime, name, phone, args.email, notes
    )


def _requested_day(raw: str, tz_name: str) -> Optional[date]:
    try:
        return date.fromisoformat(raw)
    except ValueError:
        pass
    moment = parse_requested_datetime(raw, tz_name)
    if moment is None:
        return None
    return moment.astimezone(ZoneInfo(tz_name)).date()


async def handle_check_availability(
    organization_id: UUID, args: CheckAvailabilityArgs
) -> ToolResult:
    if not args.date:
        return ToolResult(success=False, message=messages.MISSING_DATE)

    try:
        async with tool_db_session() as db:
            provider = await get_calendar_provider(db, organization_id)
            schedule = await get_org_schedule(db, organization_id)
        tz_name = schedule.timezone if schedule else settings.default_timezone

        day = _requested_day(args.date, tz_name)
        if day is None:
            return ToolResult(success=False, message=messages.UNPARSEABLE_DATE)

        if provider is None:
            result = await check_availability(organization_id, day)
        else:
            client, integration = provider
            event_type_id = parse_event_type_id(integration)
            if event_type_id is None:
                logger.error(
                    f"check_availability: Cal.com integration of organization {organization_id} "
                    f"has no usable event type id ({integration.calendar_id!r})"
                )
                return ToolResult(success=False, message=messages.CALENDAR_NOT_SET_UP)
            result = await check_availability_via_provider(client, event_type_id, day, tz_name)
    except Exception as e:
        logger.error(
            f"check_availability failed for organization {organization_id}, date {args.date}: "
            f"{type(e).__name__} - {e}",
            exc_info=True,
        )
        return ToolResult(success=False, message=messages.AVAILABILITY_FAILED)

    return ToolResult(
        success=True,
        message=result.voice_message,
        data={"date": day.isoformat(), "slots": result.slots, "timezone": result.timezone},
    )


async def handle_cancel_appointment(
    organization_id: UUID, args: CancelAppointmentArgs
) -> ToolResult:
    phone = normalize_phone(args.phone)
    if not phone:
        return ToolResult(success=False, message=messages.CANCEL_MISSING_PHONE)
    reason = sanitize_string(args.reason, MAX_REASON_LENGTH) or None
    return await cancel_appointment(organization_id, phone, reason)


async def handle_get_current_datetime(
    organization_id: UUID, now: Optional[datetime] = None
) -> ToolResult:
    tz_name = settings.default_timezone
    try:
        async with tool_db_session() as db:
            schedule = await get_org_schedule(db, organization_id)
        if schedule is not None:
            tz_name = schedule.timezone
    except Exception as e:
        logger.warning(
            f"get_current_datetime: schedule lookup failed for organization {organization_id}, "
            f"using {tz_name}: {e}"
        )

    local_now = (now or datetime.now(timezone.utc)).astimezone(ZoneInfo(tz_name))
    date_str = format_date(local_now.date(), "EEEE, MMMM d, y", locale="en_US")
    time_str = format_spoken_time(local_now, tz_name)
    return ToolResult(
        success=True,
        message=messages.CURRENT_DATETIME.format(date=date_str, time=time_str),
        data={
            "date": local_now.date().isoformat(),
            "time": local_now.strftime("%H:%M"),
            "timezone": tz_name,
            "iso": local_now.isoformat(),
        },
    )


async def dispatch_tool_call(call) -> ToolResult:
    """Route a validated tool-call envelope to its handler."""
    name = ToolName(call.function_name)
    logger.info(f"Tool call {name.value} for organization {call.organization_id}")
    if name is ToolName.BOOK_APPOINTMENT:
        return await handle_book_appointment(call.organization_id, call.arguments)
    if name is ToolName.CHECK_AVAILABILITY:
        return await handle_check_availability(call.organization_id, call.arguments)
    if name is ToolName.CANCEL_APPOINTMENT:
        return await handle_cancel_appointment(call.organization_id, call.arguments)
    return await handle_get_current_datetime(call.organization_id)
