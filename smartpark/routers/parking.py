# smartpark/routers/parking.py
"""
Parking spaces: registry reads, state transitions, history and expiry cleanup.
Domain errors raised by the services are rendered by the handlers in main.py.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from smartpark.database import get_db
from smartpark.schemas.history import HistoryEntryOut, HistoryPageOut
from smartpark.schemas.parking import (
    SpaceOut, GenerateSpacesIn, GenerateSpacesOut, ReserveIn, OccupyIn, FreeIn,
    SpaceNumberIn, TransitionOut, CleanupOut, SpaceStatusIn,
)
from smartpark.services import space_registry, state_machine, history_service, expiry_sweeper

router = APIRouter(prefix="/parking")


def _session_id(value) -> Optional[str]:
    return str(value) if value not in (None, "") else None


# ── Registry ─────────────────────────────────────────────────────────────────
@router.post("/generate-spaces", response_model=GenerateSpacesOut, status_code=201,
             summary="Replace the registry with a freshly generated layout")
async def generate_spaces(body: GenerateSpacesIn, db: Session = Depends(get_db)):
    """Deletes every existing space and creates `totalSpaces` new free ones."""
    spaces = await space_registry.generate(db, body.total_spaces, body.zone_count)
    return {"success": True, "message": f"{len(spaces)} spaces created", "spaces": len(spaces)}


@router.get("/spaces", response_model=list[SpaceOut], summary="List spaces ordered by number")
def list_spaces(zone: Optional[str] = None, status: Optional[SpaceStatusIn] = None,
                db: Session = Depends(get_db)):
    return space_registry.list_spaces(db, zone=zone, status=status)


@router.get("/spaces/{number}", response_model=SpaceOut)
def get_space(number: str, db: Session = Depends(get_db)):
    return space_registry.get_space(db, number)


# ── Transitions ──────────────────────────────────────────────────────────────
@router.post("/reserve", response_model=TransitionOut)
async def reserve(body: ReserveIn, db: Session = Depends(get_db)):
    space = await state_machine.reserve(db, body.space_number, body.plate, body.vehicle_type)
    return {"success": True, "message": "Space reserved", "space": space}


@router.post("/occupy", response_model=TransitionOut)
async def occupy(body: OccupyIn, db: Session = Depends(get_db)):
    space = await state_machine.occupy(db, body.space_number, session_id=_session_id(body.session_id),
                                       plate=body.plate, vehicle_type=body.vehicle_type)
    return {"success": True, "message": "Space occupied", "space": space}


@router.post("/free", response_model=TransitionOut)
async def free(body: FreeIn, db: Session = Depends(get_db)):
    space = await state_machine.free(db, body.space_number, session_id=_session_id(body.session_id))
    return {"success": True, "message": "Space released", "space": space}


@router.post("/cancel-reservation", response_model=TransitionOut)
async def cancel_reservation(body: SpaceNumberIn, db: Session = Depends(get_db)):
    space = await state_machine.cancel_reservation(db, body.space_number)
    return {"success": True, "message": "Reservation cancelled", "space": space}


@router.post("/out-of-service", response_model=TransitionOut)
async def out_of_service(body: SpaceNumberIn, db: Session = Depends(get_db)):
    space = await state_machine.out_of_service(db, body.space_number)
    return {"success": True, "message": "Space taken out of service", "space": space}


@router.post("/in-service", response_model=TransitionOut)
async def in_service(body: SpaceNumberIn, db: Session = Depends(get_db)):
    space = await state_machine.in_service(db, body.space_number)
    return {"success": True, "message": "Space returned to service", "space": space}


# ── History ──────────────────────────────────────────────────────────────────
@router.get("/history", response_model=HistoryPageOut, summary="Global transition history, newest first")
def get_history(page: int = Query(1, ge=1), limit: Optional[int] = Query(None, ge=1, le=1000),
                db: Session = Depends(get_db)):
    return history_service.list_all(db, page=page, limit=limit)


@router.get("/history/{space_number}", response_model=list[HistoryEntryOut])
def get_space_history(space_number: str, limit: Optional[int] = Query(None, ge=1, le=1000),
                      db: Session = Depends(get_db)):
    """Latest entries for one space, newest first."""
    return history_service.list_by_space(db, space_number, limit=limit)


# ── Expiry ───────────────────────────────────────────────────────────────────
@router.post("/cleanup-expired", response_model=CleanupOut, summary="Release expired reservations now")
async def cleanup_expired(db: Session = Depends(get_db)):
    freed = await expiry_sweeper.sweep(db)
    return {"success": True, "freed_spaces": freed}
