# smartpark/schemas/session.py
from datetime import datetime
from typing import Optional

from pydantic import Field
from smartpark.schemas.common import CamelModel, PaginationOut
from smartpark.schemas.parking import VehicleTypeIn


class VehicleIn(CamelModel):
    plate: str = Field(..., min_length=1)
    type: VehicleTypeIn
    model: str = ""
    color: str = ""


class VehicleOut(CamelModel):
    plate: str
    type: str
    model: str
    color: str


class SessionCreate(CamelModel):
    vehicle: VehicleIn
    space_number: str = Field(..., min_length=1)
    user_id: Optional[str] = None


class SessionEnd(CamelModel):
    amount: Optional[float] = Field(None, ge=0)


class SessionOut(CamelModel):
    id: int
    vehicle: VehicleOut
    space_number: str
    user_id: Optional[str] = None
    status: str
    start_time: datetime
    end_time: Optional[datetime] = None
    amount: float


class SessionEnvelope(CamelModel):
    success: bool = True
    session: SessionOut


class SessionPageOut(CamelModel):
    sessions: list[SessionOut]
    pagination: PaginationOut
