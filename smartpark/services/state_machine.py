# smartpark/services/state_machine.py
"""
Reservation / occupation state machine for parking spaces.

    free ──reserve──▶ reserved ──occupy──▶ occupied ──free──▶ free
      ▲                  │  cancel / expire
      └──────────────────┘
    any (except occupied) ──out_of_service──▶ out-of-service ──in_service──▶ free

Every transition runs under the per-space lock: read (row-locked on
PostgreSQL), check the precondition, conditional update, history append,
commit. A failed check raises before anything is written, and store_guard
rolls back whatever was staged, so a transition lands whole or not at all.
"""

from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import Session
from smartpark.config import settings
from smartpark.database import store_guard
from smartpark.errors import InvalidTransition, ValidationError
from smartpark.models.parking_space import ParkingSpace, SpaceStatus, VehicleType, CLEARED_RESERVATION
from smartpark.models.space_status_history import HistoryAction, ChangedBy
from smartpark.services import history_service, space_registry
from smartpark.services.alert_service import create_alert, log_alert
from smartpark.utils.clock import utcnow
from smartpark.utils.locks import locks_for
from smartpark.utils.logger import get_logger

logger = get_logger(__name__)

VEHICLE_TYPES = {t.value for t in VehicleType}


def normalize_plate(plate: Optional[str]) -> str:
    plate = (plate or "").strip().upper()
    if not plate:
        raise ValidationError("plate is required")
    return plate


def _commit(db: Session, space: ParkingSpace, new_status: str, action: str, reason: str,
            changed_by: str, now, reservation_info=None, session_id=None, **fields):
    number, previous_status = space.number, space.status
    space_registry.set_status(db, space, new_status, now, **fields)
    history_service.append(
        db, number, previous_status, new_status, action, reason, changed_by,
        metadata=space_registry.space_metadata(space),
        reservation_info=reservation_info, session_id=session_id, timestamp=now,
    )
    db.commit()
    logger.info(f"[SPACE] {number}: {previous_status} → {new_status} ({action})")
    return space


async def reserve(db: Session, number: str, plate: str, vehicle_type: str, now=None) -> ParkingSpace:
    plate = normalize_plate(plate)
    if vehicle_type not in VEHICLE_TYPES:
        raise ValidationError(f"vehicleType must be one of {sorted(VEHICLE_TYPES)}")
    now = now or utcnow()
    expires_at = now + timedelta(minutes=settings.RESERVATION_TTL_MINUTES)

    async with locks_for(db).hold(number):
        with store_guard(db):
            space = space_registry.get_space(db, number, for_update=True)
            if space.status != SpaceStatus.FREE.value:
                raise InvalidTransition(f"Parking space {number} is not free")
            if space.vehicle_type != vehicle_type:
                raise InvalidTransition(
                    f"Vehicle type {vehicle_type} does not match space {number} ({space.vehicle_type})")

            return _commit(
                db, space, SpaceStatus.RESERVED.value, HistoryAction.RESERVATION.value,
                f"Reserved for {plate} ({vehicle_type}) until {expires_at:%H:%M:%S}",
                ChangedBy.USER.value, now,
                reservation_info={"plate": plate, "vehicleType": vehicle_type,
                                  "expiresAt": expires_at.isoformat()},
                reservation_plate=plate,
                reservation_vehicle_type=vehicle_type,
                reservation_created_at=now,
                reservation_expires_at=expires_at,
                current_session_id=None,
            )


async def occupy(db: Session, number: str, session_id: Optional[str] = None, plate: Optional[str] = None,
                 vehicle_type: Optional[str] = None, now=None) -> ParkingSpace:
    """Any status may become occupied; a pending reservation is dropped."""
    now = now or utcnow()
    plate = plate.strip().upper() if plate else None
    fields = dict(CLEARED_RESERVATION)
    if session_id:
        fields["current_session_id"] = str(session_id)
    reason = f"Vehicle arrived - {plate} ({vehicle_type})" if plate else "Manual occupation"

    async with locks_for(db).hold(number):
        with store_guard(db):
            space = space_registry.get_space(db, number, for_update=True)
            return _commit(
                db, space, SpaceStatus.OCCUPIED.value, HistoryAction.OCCUPATION.value,
                reason, ChangedBy.SYSTEM.value, now,
                session_id=str(session_id) if session_id else None, **fields,
            )


async def free(db: Session, number: str, session_id: Optional[str] = None, now=None) -> ParkingSpace:
    now = now or utcnow()
    reason = "Vehicle departed (session)" if session_id else "Manual release"

    async with locks_for(db).hold(number):
        with store_guard(db):
            space = space_registry.get_space(db, number, for_update=True)
            return _commit(
                db, space, SpaceStatus.FREE.value, HistoryAction.LIBERATION.value,
                reason, ChangedBy.SYSTEM.value, now,
                session_id=str(session_id) if session_id else None,
                current_session_id=None, **CLEARED_RESERVATION,
            )


async def cancel_reservation(db: Session, number: str, now=None) -> ParkingSpace:
    now = now or utcnow()

    async with locks_for(db).hold(number):
        with store_guard(db):
            space = space_registry.get_space(db, number, for_update=True)
            reservation = space.reservation
            if space.status != SpaceStatus.RESERVED.value or reservation is None:
                raise InvalidTransition(f"Parking space {number} is not reserved")

            return _commit(
                db, space, SpaceStatus.FREE.value, HistoryAction.RESERVATION_CANCELLED.value,
                f"Reservation cancelled for {reservation['plate']} ({reservation['vehicleType']})",
                ChangedBy.USER.value, now,
                reservation_info={"plate": reservation["plate"],
                                  "vehicleType": reservation["vehicleType"]},
                **CLEARED_RESERVATION,
            )


async def expire_reservation(db: Session, number: str, now=None) -> ParkingSpace:
    """
    System-initiated cancellation of a reservation past its deadline.
    Raises InvalidTransition if the space is no longer reserved or not yet expired.
    """
    now = now or utcnow()

    async with locks_for(db).hold(number):
        with store_guard(db):
            space = space_registry.get_space(db, number, for_update=True)
            reservation = space.reservation
            if space.status != SpaceStatus.RESERVED.value or reservation is None:
                raise InvalidTransition(f"Parking space {number} is not reserved")
            if not reservation["expiresAt"] < now:
                raise InvalidTransition(f"Reservation on {number} has not expired yet")

            plate = reservation["plate"]
            alert_type = "reservation_expired"
            alert_message = f"The reservation for {plate} has expired. Space {number} was released automatically."
            await create_alert(
                db, alert_type, "Reservation expired", alert_message,
                priority="low",
                data={"plate": plate, "spaceNumber": number,
                      "vehicleType": reservation["vehicleType"]},
                commit=False, now=now,
            )
            space = _commit(
                db, space, SpaceStatus.FREE.value, HistoryAction.RESERVATION_EXPIRED.value,
                "Reservation expired automatically", ChangedBy.SYSTEM.value, now,
                reservation_info={"plate": plate, "vehicleType": reservation["vehicleType"]},
                **CLEARED_RESERVATION,
            )
    log_alert(alert_type, alert_message)
    return space


async def out_of_service(db: Session, number: str, now=None) -> ParkingSpace:
    now = now or utcnow()

    async with locks_for(db).hold(number):
        with store_guard(db):
            space = space_registry.get_space(db, number, for_update=True)
            if space.status == SpaceStatus.OCCUPIED.value:
                raise InvalidTransition(f"Parking space {number} is occupied and cannot be taken out of service")

            return _commit(
                db, space, SpaceStatus.OUT_OF_SERVICE.value, HistoryAction.OUT_OF_SERVICE.value,
                "Taken out of service", ChangedBy.USER.value, now,
                current_session_id=None, **CLEARED_RESERVATION,
            )


async def in_service(db: Session, number: str, now=None) -> ParkingSpace:
    now = now or utcnow()

    async with locks_for(db).hold(number):
        with store_guard(db):
            space = space_registry.get_space(db, number, for_update=True)
            return _commit(
                db, space, SpaceStatus.FREE.value, HistoryAction.IN_SERVICE.value,
                "Returned to service", ChangedBy.USER.value, now,
                current_session_id=None, **CLEARED_RESERVATION,
            )
