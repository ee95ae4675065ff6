import asyncio
import json
from datetime import datetime, timezone

import httpx
import pytest

import app.tools.notifications as notifications
from conftest import ORG_ID


def _notification():
    return notifications.AppointmentBookedNotification(
        organization_id=ORG_ID,
        appointment_id="appt-1",
        caller_name="Jane Doe",
        caller_phone="5551234567",
        start_time=datetime(2026, 3, 16, 14, 0, tzinfo=timezone.utc),
        appointment_date="Monday, March 16",
        appointment_time="10:00 AM",
        provider="internal",
    )


@pytest.mark.asyncio
async def test_without_webhook_only_logs(monkeypatch, caplog):
    monkeypatch.setattr(notifications.settings, "notification_webhook_url", None)
    caplog.set_level("INFO")

    await notifications.send_appointment_booked(_notification())

    assert "no webhook configured" in caplog.text


@pytest.mark.asyncio
async def test_webhook_receives_event_payload(monkeypatch):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200)

    real_client = httpx.AsyncClient
    monkeypatch.setattr(notifications.settings, "notification_webhook_url", "https://hooks.example.com/booked")
    monkeypatch.setattr(
        notifications.httpx,
        "AsyncClient",
        lambda **kwargs: real_client(transport=httpx.MockTransport(handler), **kwargs),
    )

    await notifications.send_appointment_booked(_notification())

    assert seen["url"] == "https://hooks.example.com/booked"
    assert seen["body"]["event"] == "appointment_booked"
    assert seen["body"]["data"]["organization_id"] == str(ORG_ID)
    assert seen["body"]["data"]["appointment_time"] == "10:00 AM"


@pytest.mark.asyncio
async def test_dispatch_swallows_delivery_errors(monkeypatch, caplog):
    async def boom(notification):
        raise httpx.ConnectError("webhook down")

    monkeypatch.setattr(notifications, "send_appointment_booked", boom)

    task = notifications.dispatch_appointment_booked(_notification())
    assert task in notifications._pending_tasks
    await task

    assert task.exception() is None
    assert "Failed to send appointment notification" in caplog.text
    await asyncio.sleep(0)
    assert task not in notifications._pending_tasks
