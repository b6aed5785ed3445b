import asyncio
import logging

from jemzy.config import CLEANUP_INTERVAL
from jemzy.db.base import execute_write
from jemzy.utils.time_utils import now_sql

logger = logging.getLogger("jemzy")

EXPIRING_TABLES = ("treasure_chests", "mystery_boxes", "dragons")


async def deactivate_expired() -> dict:
    """Flip is_active off for spawned entities past expires_at. Returns counts per table."""
    now = now_sql()
    counts = {}
    for table in EXPIRING_TABLES:
        counts[table] = await execute_write(
            f"UPDATE {table} SET is_active = 0 "
            f"WHERE is_active = 1 AND expires_at IS NOT NULL AND expires_at <= ?",
            (now,),
        )
    return counts


async def scheduler_loop():
    logger.info("Scheduler loop started")
    while True:
        try:
            counts = await deactivate_expired()
            if any(counts.values()):
                logger.info(f"Expired: {counts}")
        except Exception as e:
            logger.error(f"Scheduler error: {e}")

        await asyncio.sleep(CLEANUP_INTERVAL)


async def start_scheduler() -> asyncio.Task:
    return asyncio.create_task(scheduler_loop())
