# smartpark/models/parking_space.py
"""
Parking space registry table.
One row per space; status and reservation are mutated only through
services.state_machine. A CHECK constraint keeps the reservation columns
filled exactly when the space is reserved.
"""

from enum import Enum

from sqlalchemy import Column, Integer, String, DateTime, CheckConstraint
from smartpark.database import Base


class SpaceStatus(str, Enum):
    FREE = "free"
    RESERVED = "reserved"
    OCCUPIED = "occupied"
    OUT_OF_SERVICE = "out-of-service"


class VehicleType(str, Enum):
    CAR = "car"
    TRUCK = "truck"
    MOTORCYCLE = "motorcycle"


class ParkingSpace(Base):
    __tablename__ = "parking_spaces"
    __table_args__ = (
        CheckConstraint(
            "(status = 'reserved' AND reservation_plate IS NOT NULL AND reservation_expires_at IS NOT NULL)"
            " OR (status != 'reserved' AND reservation_plate IS NULL)",
            name="ck_reservation_iff_reserved",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    number = Column(String(10), unique=True, nullable=False, index=True)
    zone = Column(String(1), nullable=False, index=True)
    vehicle_type = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default=SpaceStatus.FREE.value, index=True)

    reservation_plate = Column(String(20))
    reservation_vehicle_type = Column(String(20))
    reservation_created_at = Column(DateTime)
    reservation_expires_at = Column(DateTime, index=True)

    current_session_id = Column(String(64))
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)

    @property
    def reservation(self):
        if self.reservation_plate is None:
            return None
        return {
            "plate": self.reservation_plate,
            "vehicleType": self.reservation_vehicle_type,
            "createdAt": self.reservation_created_at,
            "expiresAt": self.reservation_expires_at,
        }

    def __repr__(self):
        return f"<ParkingSpace {self.number} zone={self.zone} type={self.vehicle_type} status={self.status}>"


# Column values that drop a reservation; merged into every transition away from reserved.
CLEARED_RESERVATION = {
    "reservation_plate": None,
    "reservation_vehicle_type": None,
    "reservation_created_at": None,
    "reservation_expires_at": None,
}
