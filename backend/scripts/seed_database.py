# backend/scripts/seed_database.py
import asyncio
import logging
import random
import uuid
from datetime import date, datetime, time, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy import text

# Add project root to sys.path to allow importing from app
import sys
from pathlib import Path

backend_dir = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(backend_dir))

from app.config.settings import settings as app_settings
from app.core.exceptions import SlotUnavailableError
from app.db.crud.appointment import create_appointment
from app.db.models import CalendarIntegrationModel, OrganizationModel


logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("seed_database")

# --- Configuration for Seed Data ---
DEMO_ORG_ID = uuid.UUID("00000000-0000-4000-8000-000000000001")
DEMO_ORG_NAME = "Demo Dental Studio"
DEMO_TIMEZONE = "America/New_York"
DEMO_DURATION = 30
DEMO_BUSINESS_HOURS = {
    "monday": {"open": "09:00", "close": "17:00"},
    "tuesday": {"open": "09:00", "close": "17:00"},
    "wednesday": {"open": "09:00", "close": "17:00"},
    "thursday": {"open": "09:00", "close": "19:00"},
    "friday": {"open": "09:00", "close": "15:00"},
    "saturday": {"open": "10:00", "close": "13:00"},
    "sunday": None,
}
NUM_DAYS_WITH_BOOKINGS = 5
APPOINTMENTS_PER_DAY = 4

CALLER_NAMES = [
    "Maya Haddad",
    "Jonas Berg",
    "Priya Raman",
    "Luis Ortega",
    "Grace Kim",
    "Tom Okafor",
    "Ana Souza",
    "Yusuf Demir",
]


def random_phone() -> str:
    return f"1555{random.randint(1000000, 9999999)}"


async def clear_data(db: AsyncSession):
    logger.warning("Clearing existing demo data...")
    await db.execute(
        text("DELETE FROM appointments WHERE organization_id = :org"), {"org": DEMO_ORG_ID}
    )
    await db.execute(
        text("DELETE FROM calendar_integrations WHERE organization_id = :org"),
        {"org": DEMO_ORG_ID},
    )
    await db.execute(text("DELETE FROM organizations WHERE id = :org"), {"org": DEMO_ORG_ID})
    await db.commit()
    logger.info("Demo data cleared.")


async def seed_organization(
    db: AsyncSession, cal_com_api_key: Optional[str], event_type_id: Optional[str]
):
    existing = await db.get(OrganizationModel, DEMO_ORG_ID)
    if existing:
        logger.info(f"Organization {DEMO_ORG_ID} already exists, skipping.")
    else:
        db.add(
            OrganizationModel(
                id=DEMO_ORG_ID,
                name=DEMO_ORG_NAME,
                timezone=DEMO_TIMEZONE,
                business_hours=DEMO_BUSINESS_HOURS,
                default_appointment_duration=DEMO_DURATION,
            )
        )
        await db.commit()
        logger.info(f"Created organization '{DEMO_ORG_NAME}' ({DEMO_ORG_ID}).")

    if cal_com_api_key:
        db.add(
            CalendarIntegrationModel(
                organization_id=DEMO_ORG_ID,
                provider="cal_com",
                access_token=cal_com_api_key,
                calendar_id=event_type_id,
                is_active=True,
            )
        )
        await db.commit()
        logger.info(f"Attached Cal.com integration (event type {event_type_id}).")


async def seed_appointments(db: AsyncSession):
    zone = ZoneInfo(DEMO_TIMEZONE)
    created = skipped = 0
    day = date.today()
    days_seeded = 0
    while days_seeded < NUM_DAYS_WITH_BOOKINGS:
        day += timedelta(days=1)
        hours = DEMO_BUSINESS_HOURS[day.strftime("%A").lower()]
        if not hours:
            continue
        days_seeded += 1
        open_h, open_m = map(int, hours["open"].split(":"))
        close_h, close_m = map(int, hours["close"].split(":"))
        slot_count = ((close_h * 60 + close_m) - (open_h * 60 + open_m)) // DEMO_DURATION
        for slot_index in random.sample(range(slot_count), min(APPOINTMENTS_PER_DAY, slot_count)):
            start = datetime.combine(day, time(open_h, open_m), tzinfo=zone) + timedelta(
                minutes=slot_index * DEMO_DURATION
            )
            try:
                await create_appointment(
                    db,
                    organization_id=DEMO_ORG_ID,
                    start_time=start,
                    end_time=start + timedelta(minutes=DEMO_DURATION),
                    attendee_name=random.choice(CALLER_NAMES),
                    attendee_phone=random_phone(),
                    attendee_email=f"booking-{uuid.uuid4()}@{app_settings.placeholder_email_domain}",
                    duration_minutes=DEMO_DURATION,
                    metadata={"source": "seed"},
                )
                created += 1
            except SlotUnavailableError:
                skipped += 1
    logger.info(f"Seeded {created} appointments ({skipped} skipped as overlapping).")


async def main(should_clear: bool, cal_com_api_key: Optional[str], event_type_id: Optional[str]):
    logger.info(f"Connecting to database at: {app_settings.database_url}")
    engine = create_async_engine(str(app_settings.database_url))
    AsyncSessionLocal = sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with AsyncSessionLocal() as db:
        if should_clear:
            await clear_data(db)
        await seed_organization(db, cal_com_api_key, event_type_id)
        await seed_appointments(db)

    await engine.dispose()
    logger.info("Seeding complete.")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(
        description="Seed a demo organization with business hours and appointments."
    )
    parser.add_argument(
        "--clear", action="store_true", help="Clear the demo organization before seeding."
    )
    parser.add_argument("--cal-com-api-key", help="Attach an active Cal.com integration.")
    parser.add_argument("--event-type-id", help="Cal.com event type id for the integration.")
    args = parser.parse_args()
    asyncio.run(
        main(
            should_clear=args.clear,
            cal_com_api_key=args.cal_com_api_key,
            event_type_id=args.event_type_id,
        )
    )
