# smartpark/models/space_status_history.py
"""
Append-only audit trail of space status transitions.
Rows are written in the same commit as the registry change they describe
and are never updated or deleted.
"""

from enum import Enum

from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, Index
from smartpark.database import Base


class HistoryAction(str, Enum):
    CREATION = "creation"
    RESERVATION = "reservation"
    OCCUPATION = "occupation"
    LIBERATION = "liberation"
    RESERVATION_CANCELLED = "reservation_cancelled"
    RESERVATION_EXPIRED = "reservation_expired"
    OUT_OF_SERVICE = "out_of_service"
    IN_SERVICE = "in_service"


class ChangedBy(str, Enum):
    SYSTEM = "system"
    USER = "user"


class SpaceStatusHistory(Base):
    __tablename__ = "space_status_history"
    __table_args__ = (
        Index("ix_history_space_timestamp", "space_number", "timestamp"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    space_number = Column(String(10), nullable=False)
    previous_status = Column(String(20), nullable=False)   # "none" for creation
    new_status = Column(String(20), nullable=False)
    action = Column(String(30), nullable=False, index=True)
    reason = Column(Text)
    changed_by = Column(String(10), nullable=False)
    session_id = Column(String(64))
    timestamp = Column(DateTime, nullable=False, index=True)
    reservation_info = Column(JSON)
    space_metadata = Column("metadata", JSON)

    def __repr__(self):
        return (f"<SpaceStatusHistory {self.space_number} "
                f"{self.previous_status}->{self.new_status} ({self.action})>")
