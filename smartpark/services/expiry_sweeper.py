# smartpark/services/expiry_sweeper.py
"""
Expiry sweeper: releases reservations whose deadline has passed.

sweep() is called on demand (POST /parking/cleanup-expired) and, when
EXPIRY_SWEEP_INTERVAL_SECONDS > 0, from a background task started at
startup. Each space goes through state_machine.expire_reservation, so the
sweeper takes the same per-space lock as user requests.
"""

import asyncio

from sqlalchemy.orm import Session
from smartpark.database import Database, store_guard
from smartpark.errors import InvalidTransition
from smartpark.models.parking_space import ParkingSpace, SpaceStatus
from smartpark.services import state_machine
from smartpark.utils.clock import utcnow
from smartpark.utils.logger import get_logger

logger = get_logger(__name__)


def find_expired(db: Session, now) -> list:
    with store_guard(db):
        rows = (
            db.query(ParkingSpace.number)
            .filter(ParkingSpace.status == SpaceStatus.RESERVED.value,
                    ParkingSpace.reservation_expires_at < now)
            .order_by(ParkingSpace.number.asc())
            .all()
        )
    return [row.number for row in rows]


async def sweep(db: Session, now=None) -> int:
    """Frees every reserved space with expiresAt < now. Returns how many were freed."""
    now = now or utcnow()
    freed = 0
    for number in find_expired(db, now):
        try:
            await state_machine.expire_reservation(db, number, now=now)
            freed += 1
        except InvalidTransition as e:
            # Cancelled, occupied or re-reserved between the scan and the lock
            logger.info(f"[SWEEP] Skipped {number}: {e.message}")
        except Exception as e:
            logger.error(f"[SWEEP] Failed to expire reservation on {number}: {e}", exc_info=True)

    if freed:
        logger.info(f"[SWEEP] Released {freed} expired reservation(s)")
    return freed


async def run_periodic_sweeper(database: Database, interval_seconds: int):
    """Background loop; one fresh session per pass. Cancelled on shutdown."""
    logger.info(f"⏱  Expiry sweeper running every {interval_seconds}s")
    while True:
        await asyncio.sleep(interval_seconds)
        db = database.session()
        try:
            await sweep(db)
        except Exception as e:
            logger.error(f"[SWEEP] Pass failed: {e}", exc_info=True)
        finally:
            db.close()
