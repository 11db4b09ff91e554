# smartpark/schemas/alert.py
from datetime import datetime
from typing import Optional

from pydantic import Field
from smartpark.schemas.common import CamelModel


class AlertOut(CamelModel):
    id: int
    alert_type: str = Field(..., validation_alias="alert_type", serialization_alias="type")
    title: str
    message: Optional[str] = None
    priority: str
    data: Optional[dict] = None
    is_read: bool = Field(..., validation_alias="is_read", serialization_alias="read")
    timestamp: datetime


class AlertListOut(CamelModel):
    alerts: list[AlertOut]
