import logging
from typing import Optional
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.db.models.organization import OrganizationModel
from app.schemas.schedule import OrganizationSchedule

logger = logging.getLogger(__name__)


def _usable_timezone(org: OrganizationModel) -> str:
    if not org.timezone:
        return settings.default_timezone
    try:
        ZoneInfo(org.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(
            f"CRUD: Organization {org.id} has unknown timezone '{org.timezone}', "
            f"using {settings.default_timezone}"
        )
        return settings.default_timezone
    return org.timezone


async def get_organization(
    db: AsyncSession, organization_id: UUID
) -> Optional[OrganizationModel]:
    result = await db.execute(
        select(OrganizationModel).where(OrganizationModel.id == organization_id)
    )
    return result.scalars().first()


async def get_org_schedule(
    db: AsyncSession, organization_id: UUID
) -> Optional[OrganizationSchedule]:
    """
    Load the business hours, time zone and appointment duration of an organization.

    Missing time zone / duration fall back to the configured defaults. Storage
    errors are not caught here; callers decide how to phrase them.

    Args:
        db (AsyncSession): The database session.
        organization_id (UUID): The organization to look up.

    Returns:
        Optional[OrganizationSchedule]: The schedule, or None if the organization does not exist.
    """
    org = await get_organization(db, organization_id)
    if org is None:
        logger.warning(f"CRUD: Organization {organization_id} not found for schedule lookup.")
        return None

    return OrganizationSchedule(
        timezone=_usable_timezone(org),
        business_hours=org.business_hours,
        appointment_duration=org.default_appointment_duration
        or settings.default_appointment_duration,
    )
