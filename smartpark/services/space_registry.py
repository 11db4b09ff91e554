# smartpark/services/space_registry.py
"""
Space registry: the authoritative set of parking spaces.

generate() lays out a fresh registry: zones filled in order with
ceil(total / zone_count) spaces each until the total is reached, so the
last zones may hold fewer or none. Spaces are numbered per zone (A001,
A002, ...), each with a vehicle type drawn independently from the
configured car / truck / motorcycle ratios.

set_status() is the write primitive used by the state machine only.
"""

import math
import random
from typing import Optional

from sqlalchemy.orm import Session
from smartpark.config import settings
from smartpark.database import store_guard
from smartpark.errors import NotFound, InvalidTransition, ValidationError
from smartpark.models.parking_space import ParkingSpace, SpaceStatus, VehicleType
from smartpark.models.space_status_history import HistoryAction, ChangedBy
from smartpark.services import history_service
from smartpark.utils.clock import utcnow
from smartpark.utils.locks import locks_for
from smartpark.utils.logger import get_logger

logger = get_logger(__name__)


def draw_vehicle_type(rng) -> str:
    roll = rng.random()
    if roll < settings.CAR_RATIO:
        return VehicleType.CAR.value
    if roll < settings.CAR_RATIO + settings.TRUCK_RATIO:
        return VehicleType.TRUCK.value
    return VehicleType.MOTORCYCLE.value


def build_layout(total_spaces: int, zone_count: Optional[int] = None, rng=None) -> list:
    """Returns (number, zone, vehicle_type) tuples in zone order."""
    zone_count = zone_count or settings.DEFAULT_ZONE_COUNT
    zones = settings.ZONES
    if total_spaces < 1:
        raise ValidationError("totalSpaces must be a positive integer")
    if not 1 <= zone_count <= len(zones):
        raise ValidationError(f"zoneCount must be between 1 and {len(zones)}")

    rng = rng or random.Random()
    per_zone = math.ceil(total_spaces / zone_count)
    layout = []
    for zone in zones[:zone_count]:
        in_zone = min(per_zone, total_spaces - len(layout))
        for i in range(1, in_zone + 1):
            layout.append((f"{zone}{i:03d}", zone, draw_vehicle_type(rng)))
    return layout


def space_metadata(space: ParkingSpace) -> dict:
    return {"vehicleType": space.vehicle_type, "zone": space.zone}


async def generate(db: Session, total_spaces: int, zone_count: Optional[int] = None,
                   rng=None, now=None) -> list:
    """Replace the whole registry in one commit, logging a creation entry per space."""
    layout = build_layout(total_spaces, zone_count, rng)
    now = now or utcnow()

    async with locks_for(db).registry:
        with store_guard(db):
            db.query(ParkingSpace).delete(synchronize_session="fetch")
            spaces = [
                ParkingSpace(number=number, zone=zone, vehicle_type=vehicle_type,
                             status=SpaceStatus.FREE.value, created_at=now, updated_at=now)
                for number, zone, vehicle_type in layout
            ]
            db.add_all(spaces)
            for space in spaces:
                history_service.append(
                    db, space.number, "none", SpaceStatus.FREE.value,
                    HistoryAction.CREATION.value,
                    f"Created as part of a {total_spaces}-space layout",
                    ChangedBy.SYSTEM.value,
                    metadata=space_metadata(space), timestamp=now,
                )
            db.commit()

    logger.info(f"[REGISTRY] Generated {len(spaces)} spaces across {zone_count or settings.DEFAULT_ZONE_COUNT} zones")
    return spaces


def get_space(db: Session, number: str, for_update: bool = False) -> ParkingSpace:
    q = db.query(ParkingSpace).filter(ParkingSpace.number == number)
    if for_update:
        q = q.with_for_update()
    space = q.first()
    if not space:
        raise NotFound(f"Parking space {number} not found")
    return space


def list_spaces(db: Session, zone: Optional[str] = None, status: Optional[str] = None) -> list:
    q = db.query(ParkingSpace)
    if zone:
        q = q.filter(ParkingSpace.zone == zone)
    if status:
        q = q.filter(ParkingSpace.status == status)
    return q.order_by(ParkingSpace.number.asc()).all()


def set_status(db: Session, space: ParkingSpace, new_status: str, now, **fields):
    """
    Conditional update keyed on the status the caller read.
    Zero matched rows means another writer got there first.
    """
    values = {"status": new_status, "updated_at": now, **fields}
    updated = (
        db.query(ParkingSpace)
        .filter(ParkingSpace.id == space.id, ParkingSpace.status == space.status)
        .update(values, synchronize_session="evaluate")
    )
    if updated != 1:
        raise InvalidTransition(f"Parking space {space.number} was modified concurrently")
