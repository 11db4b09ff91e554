# smartpark/routers/alerts.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from smartpark.database import get_db
from smartpark.models.alert import Alert
from smartpark.schemas.alert import AlertListOut
from typing import Optional

router = APIRouter()


@router.get("/alerts", response_model=AlertListOut, summary="Latest alerts, newest first")
def get_alerts(
    alert_type: Optional[str] = None,
    unread_only: bool = False,
    limit: int = 10,
    db: Session = Depends(get_db)
):
    q = db.query(Alert)
    if alert_type:
        q = q.filter(Alert.alert_type == alert_type)
    if unread_only:
        q = q.filter(Alert.is_read.is_(False))
    alerts = q.order_by(Alert.timestamp.desc(), Alert.id.desc()).limit(max(limit, 1)).all()
    return {"alerts": alerts}


@router.put("/alerts/{alert_id}/read", summary="Mark an alert as read")
def mark_alert_read(alert_id: int, db: Session = Depends(get_db)):
    alert = db.query(Alert).filter(Alert.id == alert_id).first()
    if not alert:
        raise HTTPException(status_code=404, detail="Alert not found")
    alert.is_read = True
    db.commit()
    return {"success": True, "message": "Alert marked as read"}
