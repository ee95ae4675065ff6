import logging
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any
from uuid import UUID

from sqlalchemy import select, update, literal, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from app.config.constants import ACTIVE_STATUSES, AppointmentStatus, Provider
from app.core.exceptions import SlotUnavailableError
from app.db.models.appointment import AppointmentModel

logger = logging.getLogger(__name__)

# SQLSTATE raised by the no_overlapping_appointments exclusion constraint
EXCLUSION_VIOLATION = "23P01"


def _sqlstate(exc: IntegrityError) -> Optional[str]:
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code is None and orig is not None:
        # asyncpg keeps the driver exception as the cause of SQLAlchemy's adapter error
        code = getattr(getattr(orig, "__cause__", None), "sqlstate", None)
    return code


async def create_appointment(
    db: AsyncSession,
    organization_id: UUID,
    start_time: datetime,  # aware, stored as timestamptz
    end_time: datetime,
    attendee_name: str,
    attendee_phone: Optional[str],
    attendee_email: Optional[str] = None,
    notes: Optional[str] = None,
    provider: str = Provider.INTERNAL.value,
    external_id: Optional[str] = None,
    duration_minutes: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> AppointmentModel:
    """
    Insert a confirmed appointment.

    No availability read happens first: overlapping bookings are rejected by
    the ``no_overlapping_appointments`` exclusion constraint, which is the only
    authority on conflicts even across concurrent calls and server instances.

    Args:
        db (AsyncSession): The database session.
        organization_id (UUID): Owning organization.
        start_time (datetime): Aware start instant.
        end_time (datetime): Aware end instant (exclusive).
        attendee_name (str): Caller's name, already sanitized.
        attendee_phone (Optional[str]): Caller's phone number.
        attendee_email (Optional[str]): Real or placeholder email.
        notes (Optional[str]): Free-form notes.
        provider (str): "internal" or the calendar provider tag.
        external_id (Optional[str]): Provider booking uid for mirrored bookings.
        duration_minutes (Optional[int]): Booked length in minutes.
        metadata (Optional[Dict[str, Any]]): Provider ids, source tag.

    Returns:
        AppointmentModel: The stored row.

    Raises:
        SlotUnavailableError: The range overlaps another non-cancelled appointment.
        SQLAlchemyError: Any other storage failure, unchanged.
    """
    logger.info(
        f"CRUD: Creating {provider} appointment for organization={organization_id} "
        f"from {start_time} to {end_time}. External ID: {external_id}"
    )
    appointment = AppointmentModel(
        organization_id=organization_id,
        provider=provider,
        external_id=external_id,
        start_time=start_time,
        end_time=end_time,
        duration_minutes=duration_minutes,
        attendee_name=attendee_name,
        attendee_phone=attendee_phone,
        attendee_email=attendee_email,
        status=AppointmentStatus.CONFIRMED.value,
        notes=notes,
        metadata_=metadata,
    )
    try:
        db.add(appointment)
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if _sqlstate(e) == EXCLUSION_VIOLATION:
            logger.warning(
                f"CRUD: Overlapping appointment rejected for organization={organization_id} "
                f"at {start_time} - {end_time}."
            )
            raise SlotUnavailableError(organization_id, start_time, end_time) from e
        logger.error(
            f"CRUD: Integrity error creating appointment for organization={organization_id}: {e}",
            exc_info=True,
        )
        raise
    except Exception:
        await db.rollback()
        raise

    await db.refresh(appointment)
    logger.info(
        f"CRUD: Created appointment_id={appointment.id} with status='{appointment.status}'."
    )
    return appointment


async def get_active_appointments_in_range(
    db: AsyncSession,
    organization_id: UUID,
    range_start: datetime,
    range_end: datetime,
) -> List[AppointmentModel]:
    """
    Confirmed/pending appointments of an organization that overlap
    ``[range_start, range_end)``.

    Storage errors propagate so callers never mistake an outage for an empty day.
    """
    stmt = (
        select(AppointmentModel)
        .where(
            AppointmentModel.organization_id == organization_id,
            AppointmentModel.status.in_(ACTIVE_STATUSES),
            AppointmentModel.start_time < range_end,
            AppointmentModel.end_time > range_start,
        )
        .order_by(AppointmentModel.start_time)
    )
    result = await db.execute(stmt)
    appointments = list(result.scalars().all())
    logger.debug(
        f"CRUD: {len(appointments)} active appointments for organization={organization_id} "
        f"between {range_start} and {range_end}"
    )
    return appointments


async def get_next_appointment_by_phone(
    db: AsyncSession,
    organization_id: UUID,
    phone: str,
    now: Optional[datetime] = None,
) -> Optional[AppointmentModel]:
    """
    The caller's nearest upcoming confirmed/pending appointment.

    Args:
        db (AsyncSession): The database session.
        organization_id (UUID): Organization the call belongs to.
        phone (str): Phone number the appointment was booked with.
        now (Optional[datetime]): Reference instant, defaults to the current UTC time.

    Returns:
        Optional[AppointmentModel]: The earliest appointment starting at or after ``now``.
    """
    now = now or datetime.now(timezone.utc)
    stmt = (
        select(AppointmentModel)
        .where(
            AppointmentModel.organization_id == organization_id,
            AppointmentModel.attendee_phone == phone,
            AppointmentModel.status.in_(ACTIVE_STATUSES),
            AppointmentModel.start_time >= now,
        )
        .order_by(AppointmentModel.start_time.asc())
        .limit(1)
    )
    result = await db.execute(stmt)
    return result.scalars().first()


async def mark_appointment_cancelled(
    db: AsyncSession, appointment_id: UUID, reason: Optional[str] = None
) -> bool:
    """
    Set an appointment's status to cancelled.

    Rows that are already cancelled are left alone, so there is no way back
    out of ``cancelled``. Returns False when nothing was updated.
    """
    values: Dict[Any, Any] = {
        AppointmentModel.status: AppointmentStatus.CANCELLED.value,
        AppointmentModel.updated_at: func.now(),
    }
    if reason:
        values[AppointmentModel.metadata_] = func.coalesce(
            AppointmentModel.metadata_, literal({}, JSONB)
        ).op("||")(literal({"cancellationReason": reason}, JSONB))

    stmt = (
        update(AppointmentModel)
        .where(
            AppointmentModel.id == appointment_id,
            AppointmentModel.status != AppointmentStatus.CANCELLED.value,
        )
        .values(values)
        .returning(AppointmentModel.id)
    )
    try:
        result = await db.execute(stmt)
        updated_id = result.scalar_one_or_none()
        if updated_id is None:
            logger.warning(
                f"CRUD: Appointment {appointment_id} not cancelled (not found or already cancelled)."
            )
            await db.rollback()
            return False
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"CRUD: Appointment {appointment_id} marked cancelled.")
    return True
