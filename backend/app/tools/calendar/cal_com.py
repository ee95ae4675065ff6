"""
Cal.com v2 API client
─────────────────────
Used when an organization has an active ``cal_com`` calendar integration.
Bookings are created on Cal.com first and mirrored locally afterwards (see
``app.tools.scheduler.booking``).
"""

import logging
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

import httpx
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.db.crud.calendar_integration import get_active_integration
from app.db.models.calendar_integration import CalendarIntegrationModel

logger = logging.getLogger(__name__)

# Cal.com phrases that mean "somebody else got there first"
_SLOT_TAKEN_MARKERS = (
    "slot is not available",
    "no_available_users_found",
    "already has booking",
)


class CalComError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class CalComSlotUnavailableError(CalComError):
    """Cal.com rejected the booking because the slot is taken."""


class CalComBooking(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int
    uid: str
    start_time: str = Field(alias="startTime")
    end_time: Optional[str] = Field(default=None, alias="endTime")
    status: Optional[str] = None


class CalComDaySlots(BaseModel):
    date: str
    times: List[str] = []


class CalComClient:
    """Thin async wrapper over the Cal.com v2 REST API (API-key bearer auth)."""

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        api_version: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = (base_url or settings.cal_com_api_base).rstrip("/")
        self.api_version = api_version or settings.cal_com_api_version
        self.timeout = timeout or settings.http_timeout_seconds
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "cal-api-version": self.api_version,
            "Authorization": f"Bearer {self.api_key}",
        }

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        url = f"{self.base_url}{endpoint}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(
                    method, url, params=params, json=json, headers=self._headers()
                )
        except httpx.HTTPError as e:
            logger.error(f"Cal.com: {method} {endpoint} failed: {type(e).__name__} - {e}")
            raise CalComError(f"Cal.com request failed: {e}") from e

        if response.is_error:
            body = response.text
            logger.error(f"Cal.com: {method} {endpoint} returned {response.status_code}: {body[:500]}")
            lowered = body.lower()
            error_cls = (
                CalComSlotUnavailableError
                if any(marker in lowered for marker in _SLOT_TAKEN_MARKERS)
                else CalComError
            )
            raise error_cls(
                f"Cal.com API error: {response.status_code} - {body}",
                status_code=response.status_code,
                body=body,
            )

        if not response.content:
            return {}
        return response.json()

    async def create_booking(
        self,
        event_type_id: int,
        start: str,
        name: str,
        email: str,
        phone: Optional[str] = None,
        notes: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        time_zone: Optional[str] = None,
    ) -> CalComBooking:
        attendee: Dict[str, Any] = {"name": name, "email": email}
        if phone:
            attendee["phoneNumber"] = phone
        if time_zone:
            attendee["timeZone"] = time_zone
        payload: Dict[str, Any] = {
            "eventTypeId": event_type_id,
            "start": start,
            "attendee": attendee,
        }
        if notes:
            payload["notes"] = notes
        if metadata:
            payload["metadata"] = metadata

        logger.info(f"Cal.com: Creating booking for event type {event_type_id} at {start}")
        response = await self._request("POST", "/bookings", json=payload)
        booking = CalComBooking.model_validate(response.get("data") or {})
        logger.info(f"Cal.com: Created booking id={booking.id} uid={booking.uid}")
        return booking

    async def cancel_booking(self, booking_id: int, reason: Optional[str] = None) -> bool:
        await self._request(
            "DELETE",
            f"/bookings/{booking_id}/cancel",
            json={"cancellationReason": reason or "Cancelled by user"},
        )
        logger.info(f"Cal.com: Cancelled booking id={booking_id}")
        return True

    async def get_availability(
        self, event_type_id: int, start_time: str, end_time: str
    ) -> List[CalComDaySlots]:
        response = await self._request(
            "GET",
            "/slots",
            params={
                "eventTypeId": str(event_type_id),
                "startTime": start_time,
                "endTime": end_time,
            },
        )
        data = response.get("data") or {}
        # older api versions nest the map under "slots"
        by_date = data.get("slots", data) if isinstance(data, dict) else {}
        days = []
        for day, entries in sorted(by_date.items()):
            times = [
                entry.get("time") or entry.get("start")
                for entry in entries or []
                if isinstance(entry, dict) and (entry.get("time") or entry.get("start"))
            ]
            days.append(CalComDaySlots(date=day, times=times))
        return days


def parse_event_type_id(integration: CalendarIntegrationModel) -> Optional[int]:
    """The integration's ``calendar_id`` holds the Cal.com event type id as text."""
    raw = (integration.calendar_id or "").strip()
    if not raw.isdigit():
        return None
    return int(raw)


async def get_calendar_provider(
    db: AsyncSession, organization_id: UUID
) -> Optional[Tuple[CalComClient, CalendarIntegrationModel]]:
    """
    Client plus integration row for an organization that books through Cal.com.

    None means the organization books internally.
    """
    integration = await get_active_integration(db, organization_id)
    if integration is None or not integration.access_token:
        return None
    return CalComClient(integration.access_token), integration
