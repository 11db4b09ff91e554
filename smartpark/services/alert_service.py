# smartpark/services/alert_service.py
"""
Shared alert creation service.
Used by the state machine's expiry path; any other producer goes through here too.
"""

from sqlalchemy.orm import Session
from smartpark.models.alert import Alert
from smartpark.utils.clock import utcnow
from smartpark.utils.logger import get_logger

logger = get_logger(__name__)


async def create_alert(db: Session, alert_type, title, message, priority="medium", data=None,
                       commit=True, now=None):
    """
    Create an alert record. Commits and logs immediately unless the caller
    owns the transaction; that caller calls log_alert() after its commit.
    """
    alert = Alert(alert_type=alert_type, title=title, message=message, priority=priority,
                  data=data, is_read=False, timestamp=now or utcnow())
    db.add(alert)
    if commit:
        db.commit()
        log_alert(alert_type, message)
    return alert


def log_alert(alert_type: str, message: str):
    logger.warning(f"[ALERT][{alert_type.upper()}] {message}")
