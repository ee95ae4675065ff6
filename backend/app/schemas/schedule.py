# app/schemas/schedule.py
from typing import Any, Dict, NamedTuple, Optional
from pydantic import BaseModel, Field


class DayHours(NamedTuple):
    """Opening window of one local day, in minutes since local midnight."""

    open: int
    close: int


class OrganizationSchedule(BaseModel):
    timezone: str
    # lowercase weekday -> {"open": "HH:MM", "close": "HH:MM"}; null / missing means closed
    business_hours: Optional[Dict[str, Any]] = None
    appointment_duration: int = Field(default=30, ge=5, le=480)

    @property
    def has_business_hours(self) -> bool:
        return bool(self.business_hours)
