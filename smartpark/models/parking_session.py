# smartpark/models/parking_session.py
"""
Parking sessions — one vehicle holding one space from arrival to departure.
Started and ended by session_service, which drives the matching
occupation / liberation transitions.
"""

from enum import Enum

from sqlalchemy import Column, Integer, String, DateTime, Float
from smartpark.database import Base


class SessionStatus(str, Enum):
    ACTIVE = "active"
    ENDED = "ended"


class ParkingSession(Base):
    __tablename__ = "parking_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    plate = Column(String(20), nullable=False, index=True)
    vehicle_type = Column(String(20), nullable=False)
    vehicle_model = Column(String(100), nullable=False, default="")
    vehicle_color = Column(String(50), nullable=False, default="")
    space_number = Column(String(10), nullable=False)
    user_id = Column(String(64), index=True)
    status = Column(String(10), nullable=False, default=SessionStatus.ACTIVE.value, index=True)
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime)
    amount = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)

    @property
    def vehicle(self):
        return {
            "plate": self.plate,
            "type": self.vehicle_type,
            "model": self.vehicle_model,
            "color": self.vehicle_color,
        }

    def __repr__(self):
        return f"<ParkingSession {self.id} {self.plate} @ {self.space_number} status={self.status}>"
