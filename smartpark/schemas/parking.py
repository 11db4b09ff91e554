# smartpark/schemas/parking.py
from datetime import datetime
from typing import Optional, Literal, Union

from pydantic import Field
from smartpark.schemas.common import CamelModel

VehicleTypeIn = Literal["car", "truck", "motorcycle"]
SpaceStatusIn = Literal["free", "reserved", "occupied", "out-of-service"]


class ReservationOut(CamelModel):
    plate: str
    vehicle_type: str
    created_at: datetime
    expires_at: datetime


class SpaceOut(CamelModel):
    id: int
    number: str
    zone: str
    vehicle_type: str
    status: str
    reservation: Optional[ReservationOut] = None
    current_session_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class GenerateSpacesIn(CamelModel):
    total_spaces: int = Field(..., ge=1, le=10000)
    zone_count: Optional[int] = Field(None, ge=1, le=26)


class GenerateSpacesOut(CamelModel):
    success: bool = True
    message: str
    spaces: int


class SpaceNumberIn(CamelModel):
    space_number: str = Field(..., min_length=1, max_length=16)


class ReserveIn(SpaceNumberIn):
    plate: str = Field(..., min_length=1)
    vehicle_type: VehicleTypeIn


class OccupyIn(SpaceNumberIn):
    session_id: Optional[Union[int, str]] = None
    plate: Optional[str] = None
    vehicle_type: Optional[VehicleTypeIn] = None


class FreeIn(SpaceNumberIn):
    session_id: Optional[Union[int, str]] = None


class TransitionOut(CamelModel):
    success: bool = True
    message: str
    space: SpaceOut


class CleanupOut(CamelModel):
    success: bool = True
    freed_spaces: int
