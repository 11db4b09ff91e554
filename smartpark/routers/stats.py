# smartpark/routers/stats.py
"""Occupancy and session counters for the dashboard."""

from datetime import datetime, time

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session
from smartpark.database import get_db
from smartpark.models.parking_session import ParkingSession, SessionStatus
from smartpark.models.parking_space import ParkingSpace, SpaceStatus
from smartpark.utils.clock import utcnow

router = APIRouter()


@router.get("/stats", summary="Space counts by status and session activity")
def get_stats(db: Session = Depends(get_db)):
    counts = dict(
        db.query(ParkingSpace.status, func.count(ParkingSpace.id))
        .group_by(ParkingSpace.status)
        .all()
    )
    total = sum(counts.values())
    occupied = counts.get(SpaceStatus.OCCUPIED.value, 0)

    now = utcnow()
    start_of_day = datetime.combine(now.date(), time.min)
    today = db.query(func.count(ParkingSession.id)).filter(ParkingSession.start_time >= start_of_day).scalar()
    active = db.query(func.count(ParkingSession.id)).filter(
        ParkingSession.status == SessionStatus.ACTIVE.value).scalar()

    return {
        "spaces": {
            "total": total,
            "free": counts.get(SpaceStatus.FREE.value, 0),
            "occupied": occupied,
            "reserved": counts.get(SpaceStatus.RESERVED.value, 0),
            "outOfService": counts.get(SpaceStatus.OUT_OF_SERVICE.value, 0),
            "occupancyRate": round(occupied / total * 100) if total else 0,
        },
        "sessions": {"today": today, "active": active},
        "timestamp": now.isoformat(),
    }
