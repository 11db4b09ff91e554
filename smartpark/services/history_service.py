# smartpark/services/history_service.py
"""
History recorder, an append-only log of space status transitions.

Entries arrive from the state machine and the registry as finished facts:
nothing here checks whether a transition was legal. append() only stamps and
stages the row; the caller commits it together with the registry change.
"""

import math
from typing import Optional

from sqlalchemy.orm import Session
from smartpark.config import settings
from smartpark.errors import ValidationError
from smartpark.models.space_status_history import SpaceStatusHistory
from smartpark.utils.clock import utcnow


def append(db: Session, space_number, previous_status, new_status, action, reason, changed_by,
           metadata=None, reservation_info=None, session_id=None, timestamp=None):
    entry = SpaceStatusHistory(
        space_number=space_number,
        previous_status=previous_status,
        new_status=new_status,
        action=action,
        reason=reason,
        changed_by=changed_by,
        session_id=session_id,
        timestamp=timestamp or utcnow(),
        reservation_info=reservation_info,
        space_metadata=metadata,
    )
    db.add(entry)
    return entry


def _newest_first(query):
    return query.order_by(SpaceStatusHistory.timestamp.desc(), SpaceStatusHistory.id.desc())


def list_by_space(db: Session, space_number: str, limit: Optional[int] = None):
    """Latest entries for one space, newest first."""
    if limit is None:
        limit = settings.HISTORY_SPACE_LIMIT
    if limit < 1:
        raise ValidationError("limit must be a positive integer")
    q = db.query(SpaceStatusHistory).filter(SpaceStatusHistory.space_number == space_number)
    return _newest_first(q).limit(limit).all()


def list_all(db: Session, page: int = 1, limit: Optional[int] = None) -> dict:
    """One page of the global history plus pagination counters."""
    if limit is None:
        limit = settings.HISTORY_PAGE_LIMIT
    if page < 1 or limit < 1:
        raise ValidationError("page and limit must be positive integers")

    total = db.query(SpaceStatusHistory).count()
    entries = (
        _newest_first(db.query(SpaceStatusHistory))
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "history": entries,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit),
        },
    }
