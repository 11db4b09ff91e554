# smartpark/services/session_service.py
"""
Parking sessions: a vehicle arriving at a space and later leaving it.

Starting a session occupies the space with currentSessionId set; ending it
releases the space. The session row and the space transition share one
commit, so a failed occupation leaves no orphan session behind.
"""

import math
from typing import Optional

from sqlalchemy.orm import Session
from smartpark.database import store_guard
from smartpark.errors import NotFound, InvalidTransition, ValidationError
from smartpark.models.parking_session import ParkingSession, SessionStatus
from smartpark.models.parking_space import ParkingSpace
from smartpark.services import state_machine
from smartpark.utils.clock import utcnow
from smartpark.utils.logger import get_logger

logger = get_logger(__name__)


async def start_session(db: Session, plate: str, vehicle_type: str, space_number: str,
                        user_id: Optional[str] = None, model: str = "", color: str = "",
                        now=None) -> ParkingSession:
    plate = state_machine.normalize_plate(plate)
    now = now or utcnow()

    with store_guard(db):
        session = ParkingSession(
            plate=plate, vehicle_type=vehicle_type, vehicle_model=model or "",
            vehicle_color=color or "", space_number=space_number, user_id=user_id,
            status=SessionStatus.ACTIVE.value, start_time=now, amount=0.0,
            created_at=now, updated_at=now,
        )
        db.add(session)
        db.flush()
        session_id = session.id

    # occupy() commits the pending session row along with the transition
    await state_machine.occupy(db, space_number, session_id=str(session_id), plate=plate,
                               vehicle_type=vehicle_type, now=now)
    logger.info(f"[SESSION] #{session_id} started: {plate} at {space_number}")
    return get_session(db, session_id)


def get_session(db: Session, session_id: int) -> ParkingSession:
    with store_guard(db):
        session = db.query(ParkingSession).filter(ParkingSession.id == session_id).first()
    if not session:
        raise NotFound(f"Session {session_id} not found")
    return session


def list_sessions(db: Session, status: Optional[str] = None, user_id: Optional[str] = None,
                  page: int = 1, limit: int = 20) -> dict:
    if page < 1 or limit < 1:
        raise ValidationError("page and limit must be positive integers")

    with store_guard(db):
        q = db.query(ParkingSession)
        if status:
            q = q.filter(ParkingSession.status == status)
        if user_id:
            q = q.filter(ParkingSession.user_id == user_id)
        total = q.count()
        sessions = (
            q.order_by(ParkingSession.start_time.desc(), ParkingSession.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
    return {
        "sessions": sessions,
        "pagination": {"page": page, "limit": limit, "total": total,
                       "pages": math.ceil(total / limit)},
    }


async def end_session(db: Session, session_id: int, amount: Optional[float] = None,
                      now=None) -> ParkingSession:
    """Close the session and release its space if the session still holds it."""
    now = now or utcnow()
    session = get_session(db, session_id)
    if session.status == SessionStatus.ENDED.value:
        raise InvalidTransition(f"Session {session_id} has already ended")
    if amount is not None and amount < 0:
        raise ValidationError("amount must not be negative")

    session.status = SessionStatus.ENDED.value
    session.end_time = now
    session.updated_at = now
    if amount is not None:
        session.amount = amount

    space_number = session.space_number
    with store_guard(db):
        space = db.query(ParkingSpace).filter(ParkingSpace.number == space_number).first()
        holds_space = space is not None and space.current_session_id == str(session_id)
        if not holds_space:
            logger.warning(f"[SESSION] #{session_id} no longer holds {space_number}; space left as is")
            db.commit()

    if holds_space:
        # free() commits the session update with the liberation
        await state_machine.free(db, space_number, session_id=str(session_id), now=now)

    logger.info(f"[SESSION] #{session_id} ended at {space_number}")
    return get_session(db, session_id)
