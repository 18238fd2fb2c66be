# seed script — creates a demo schedule in mongodb for one owner
# yesterday and today sessions with mixed statuses so the analytics panel has data
# run once: SEED_OWNER_ID=<owner> python -m shanti.seed

import asyncio
import logging
from datetime import datetime, time, timedelta, timezone, tzinfo

from shanti.config import settings
from shanti.services.db import Database, db
from shanti.services.auth_service import create_access_token
from shanti.services.analytics_service import clinic_timezone
from shanti.services.schedule_store import ScheduleStore

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

# (day offset, local hour, therapist, therapy, status)
DEMO_SESSIONS = [
    (-1, 9, "dr_anand", "Abhyanga", "completed"),
    (-1, 10, "dr_anand", "Shirodhara", "completed"),
    (-1, 11, "dr_mehta", "Basti", "completed"),
    (-1, 14, "dr_mehta", None, "completed"),
    (-1, 16, "dr_iyer", "Nasya", "cancelled"),
    (0, 9, "dr_anand", "Abhyanga", "completed"),
    (0, 10, "dr_mehta", "Virechana", "completed"),
    (0, 11, "dr_iyer", "Nasya", "cancelled"),
    (0, 13, "dr_anand", "Shirodhara", "scheduled"),
    (0, 15, "dr_mehta", None, "scheduled"),
    (0, 17, "dr_iyer", "Pizhichil", "scheduled"),
]


def build_demo_sessions(owner_id: str, now: datetime, tz: tzinfo) -> list[dict]:
    """schedule documents for the demo day, relative to now's local date"""
    today = now.astimezone(tz).date()
    docs = []
    for day_offset, hour, therapist_id, notes, status in DEMO_SESSIONS:
        start = datetime.combine(today + timedelta(days=day_offset), time(hour=hour), tzinfo=tz)
        docs.append({
            "owner_id": owner_id,
            "therapist_id": therapist_id,
            "start_time": start,
            "end_time": start + timedelta(minutes=50),
            "notes": notes,
            "status": status,
        })
    return docs


async def seed_owner(owner_id: str, database: Database) -> int:
    """insert the demo sessions unless the owner already has records, returns inserted count"""
    store = ScheduleStore(database)
    existing = await store.find({"owner_id": owner_id}, limit=1)
    if existing:
        logger.info(f"Owner {owner_id} already has schedules, skipping")
        return 0

    now = datetime.now(timezone.utc)
    inserted = 0
    for doc in build_demo_sessions(owner_id, now, clinic_timezone()):
        await store.insert(doc)
        inserted += 1
    logger.info(f"Created {inserted} demo sessions for owner {owner_id}")
    return inserted


async def seed():
    """seed the configured owner and print a dev token for it"""
    owner_id = settings.SEED_OWNER_ID
    if not owner_id:
        logger.error("SEED_OWNER_ID is not set")
        return

    await db.connect()
    await seed_owner(owner_id, db)

    token = create_access_token({"sub": owner_id}, expires_delta=timedelta(days=1))
    logger.info(f"Dev access token for {owner_id}: {token}")

    logger.info("Seed complete!")
    await db.close()


if __name__ == "__main__":
    asyncio.run(seed())
