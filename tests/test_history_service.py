# tests/test_history_service.py
"""Unit tests for the history recorder."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import datetime, timedelta
from smartpark.errors import ValidationError
from smartpark.services import history_service

T0 = datetime(2026, 3, 10, 9, 0, 0)


def record(db, number, minutes, action="liberation"):
    history_service.append(db, number, "occupied", "free", action, "test", "system",
                           metadata={"zone": number[0], "vehicleType": "car"},
                           timestamp=T0 + timedelta(minutes=minutes))


class TestHistoryService:
    def test_append_stamps_timestamp_when_missing(self, db):
        entry = history_service.append(db, "A001", "free", "reserved", "reservation", "r", "user")
        db.commit()
        assert entry.timestamp is not None
        assert entry.id is not None

    def test_append_does_not_validate_transition(self, db):
        # Recorder trusts its caller, even for odd pairs
        history_service.append(db, "A001", "out-of-service", "reserved", "reservation", "r", "user")
        db.commit()
        assert len(history_service.list_by_space(db, "A001")) == 1

    def test_list_by_space_newest_first_and_limited(self, db):
        for minutes in (5, 1, 3):
            record(db, "A001", minutes)
        record(db, "B001", 10)
        db.commit()

        entries = history_service.list_by_space(db, "A001")
        assert [e.timestamp for e in entries] == [T0 + timedelta(minutes=m) for m in (5, 3, 1)]
        assert len(history_service.list_by_space(db, "A001", limit=2)) == 2

    def test_list_by_space_unknown_is_empty(self, db):
        assert history_service.list_by_space(db, "Z999") == []

    def test_list_all_paginates(self, db):
        for minutes in range(7):
            record(db, f"A00{minutes}", minutes)
        db.commit()

        page1 = history_service.list_all(db, page=1, limit=3)
        page3 = history_service.list_all(db, page=3, limit=3)

        assert page1["pagination"] == {"page": 1, "limit": 3, "total": 7, "pages": 3}
        assert [e.space_number for e in page1["history"]] == ["A006", "A005", "A004"]
        assert [e.space_number for e in page3["history"]] == ["A000"]

    def test_list_all_empty(self, db):
        result = history_service.list_all(db, page=1, limit=10)
        assert result["history"] == []
        assert result["pagination"]["pages"] == 0

    @pytest.mark.parametrize("page, limit", [(0, 10), (1, -1), (1, 0)])
    def test_list_all_rejects_bad_paging(self, db, page, limit):
        with pytest.raises(ValidationError):
            history_service.list_all(db, page=page, limit=limit)

    @pytest.mark.parametrize("limit", [0, -3])
    def test_list_by_space_rejects_non_positive_limit(self, db, limit):
        with pytest.raises(ValidationError):
            history_service.list_by_space(db, "A001", limit=limit)
