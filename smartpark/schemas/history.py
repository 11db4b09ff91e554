# smartpark/schemas/history.py
from datetime import datetime
from typing import Optional

from pydantic import Field
from smartpark.schemas.common import CamelModel, PaginationOut


class HistoryEntryOut(CamelModel):
    id: int
    space_number: str
    previous_status: str
    new_status: str
    action: str
    reason: Optional[str] = None
    changed_by: str
    session_id: Optional[str] = None
    timestamp: datetime
    reservation_info: Optional[dict] = None
    # ORM attribute is space_metadata; .metadata on the model is the SQLAlchemy MetaData
    space_metadata: Optional[dict] = Field(None, validation_alias="space_metadata",
                                           serialization_alias="metadata")


class HistoryPageOut(CamelModel):
    history: list[HistoryEntryOut]
    pagination: PaginationOut
