# smartpark/models/alert.py
"""
Alerts table — operator-facing notices raised as side effects of transitions
(e.g. a reservation expiring). Only is_read changes after creation.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, JSON
from smartpark.database import Base


class Alert(Base):
    __tablename__ = "alerts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    alert_type = Column(String(50), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    message = Column(Text)
    priority = Column(String(10), nullable=False, default="medium")
    data = Column(JSON)
    is_read = Column(Boolean, nullable=False, default=False)
    timestamp = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<Alert {self.id} type={self.alert_type} read={self.is_read}>"
