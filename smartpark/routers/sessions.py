# smartpark/routers/sessions.py
"""Parking sessions — start (occupies the space), list, get, end (releases it)."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from smartpark.database import get_db
from smartpark.schemas.session import SessionCreate, SessionEnd, SessionEnvelope, SessionPageOut
from smartpark.services import session_service

router = APIRouter(prefix="/parking")


@router.post("/sessions", response_model=SessionEnvelope, status_code=201, summary="Start a session")
async def create_session(body: SessionCreate, db: Session = Depends(get_db)):
    session = await session_service.start_session(
        db, body.vehicle.plate, body.vehicle.type, body.space_number, user_id=body.user_id,
        model=body.vehicle.model, color=body.vehicle.color,
    )
    return {"success": True, "session": session}


@router.get("/sessions", response_model=SessionPageOut)
def list_sessions(status: Optional[str] = None, user_id: Optional[str] = Query(None, alias="userId"),
                  page: int = Query(1, ge=1), limit: int = Query(20, ge=1, le=500),
                  db: Session = Depends(get_db)):
    return session_service.list_sessions(db, status=status, user_id=user_id, page=page, limit=limit)


@router.get("/sessions/{session_id}", response_model=SessionEnvelope)
def get_session(session_id: int, db: Session = Depends(get_db)):
    return {"success": True, "session": session_service.get_session(db, session_id)}


@router.put("/sessions/{session_id}/end", response_model=SessionEnvelope, summary="End a session")
async def end_session(session_id: int, body: Optional[SessionEnd] = None, db: Session = Depends(get_db)):
    amount = body.amount if body else None
    session = await session_service.end_session(db, session_id, amount=amount)
    return {"success": True, "session": session}
