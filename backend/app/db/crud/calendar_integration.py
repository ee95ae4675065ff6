import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import Provider
from app.db.models.calendar_integration import CalendarIntegrationModel

logger = logging.getLogger(__name__)


async def get_active_integration(
    db: AsyncSession,
    organization_id: UUID,
    provider: str = Provider.CAL_COM.value,
) -> Optional[CalendarIntegrationModel]:
    """
    Return the active calendar integration of an organization for ``provider``.

    An organization without one books internally.
    """
    stmt = (
        select(CalendarIntegrationModel)
        .where(
            CalendarIntegrationModel.organization_id == organization_id,
            CalendarIntegrationModel.provider == provider,
            CalendarIntegrationModel.is_active.is_(True),
        )
        .order_by(CalendarIntegrationModel.created_at.desc())
        .limit(1)
    )
    result = await db.execute(stmt)
    integration = result.scalars().first()
    if integration is None:
        logger.debug(f"CRUD: No active {provider} integration for organization {organization_id}")
    return integration
