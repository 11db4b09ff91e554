# tests/test_expiry_sweeper.py
"""Unit tests for the reservation expiry sweeper."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import logging
import pytest
from datetime import datetime, timedelta
from unittest.mock import patch
from sqlalchemy.exc import OperationalError
from smartpark.errors import InvalidTransition, StoreUnavailable
from smartpark.models.alert import Alert
from smartpark.services import expiry_sweeper, state_machine, space_registry, history_service
from tests.conftest import add_space

T0 = datetime(2026, 3, 10, 14, 0, 0)


async def reserve_at(db, number, minutes_offset, plate="AB-123"):
    add_space(db, number, "car")
    await state_machine.reserve(db, number, plate, "car", now=T0 + timedelta(minutes=minutes_offset))


class TestExpirySweeper:
    @pytest.mark.asyncio
    async def test_frees_only_expired_reservations(self, db):
        await reserve_at(db, "A001", 0)        # expires T0+30
        await reserve_at(db, "A002", 20)       # expires T0+50
        add_space(db, "A003", "car", status="occupied")

        freed = await expiry_sweeper.sweep(db, now=T0 + timedelta(minutes=40))

        assert freed == 1
        db.expire_all()
        assert space_registry.get_space(db, "A001").status == "free"
        assert space_registry.get_space(db, "A001").reservation is None
        assert space_registry.get_space(db, "A002").status == "reserved"
        assert space_registry.get_space(db, "A003").status == "occupied"

    @pytest.mark.asyncio
    async def test_deadline_is_strict(self, db):
        await reserve_at(db, "A001", 0)
        freed = await expiry_sweeper.sweep(db, now=T0 + timedelta(minutes=30))
        assert freed == 0

    @pytest.mark.asyncio
    async def test_each_expiry_yields_one_entry_and_one_alert(self, db):
        await reserve_at(db, "A001", 0, plate="ab-1")
        await reserve_at(db, "B001", 0, plate="cd-2")

        freed = await expiry_sweeper.sweep(db, now=T0 + timedelta(hours=1))

        assert freed == 2
        for number, plate in (("A001", "AB-1"), ("B001", "CD-2")):
            latest = history_service.list_by_space(db, number)[0]
            assert latest.action == "reservation_expired"
            assert latest.changed_by == "system"
            assert latest.reservation_info["plate"] == plate

        alerts = db.query(Alert).order_by(Alert.id).all()
        assert len(alerts) == 2
        assert {a.alert_type for a in alerts} == {"reservation_expired"}
        assert {a.priority for a in alerts} == {"low"}
        assert alerts[0].is_read is False
        assert alerts[0].data == {"plate": "AB-1", "spaceNumber": "A001", "vehicleType": "car"}
        assert "A001" in alerts[0].message and "AB-1" in alerts[0].message

    @pytest.mark.asyncio
    async def test_second_sweep_is_a_no_op(self, db):
        await reserve_at(db, "A001", 0)
        later = T0 + timedelta(hours=1)
        assert await expiry_sweeper.sweep(db, now=later) == 1
        assert await expiry_sweeper.sweep(db, now=later) == 0
        assert db.query(Alert).count() == 1

    @pytest.mark.asyncio
    async def test_failure_on_one_space_does_not_block_others(self, db):
        await reserve_at(db, "A001", 0)
        await reserve_at(db, "A002", 0)
        real_expire = state_machine.expire_reservation

        async def flaky_expire(session, number, now=None):
            if number == "A001":
                raise RuntimeError("malformed reservation")
            return await real_expire(session, number, now=now)

        with patch("smartpark.services.expiry_sweeper.state_machine.expire_reservation",
                   side_effect=flaky_expire):
            freed = await expiry_sweeper.sweep(db, now=T0 + timedelta(hours=1))

        assert freed == 1
        db.expire_all()
        assert space_registry.get_space(db, "A001").status == "reserved"
        assert space_registry.get_space(db, "A002").status == "free"

    @pytest.mark.asyncio
    async def test_expire_refuses_unexpired_reservation(self, db):
        await reserve_at(db, "A001", 0)
        with pytest.raises(InvalidTransition):
            await state_machine.expire_reservation(db, "A001", now=T0 + timedelta(minutes=5))
        assert db.query(Alert).count() == 0

    @pytest.mark.asyncio
    async def test_alert_is_logged_once_committed(self, db, caplog):
        await reserve_at(db, "A001", 0)
        with caplog.at_level(logging.WARNING, logger="smartpark.services.alert_service"):
            await state_machine.expire_reservation(db, "A001", now=T0 + timedelta(hours=1))
        assert [r.getMessage() for r in caplog.records if "[ALERT]" in r.getMessage()] == [
            "[ALERT][RESERVATION_EXPIRED] The reservation for AB-123 has expired. "
            "Space A001 was released automatically."
        ]

    @pytest.mark.asyncio
    async def test_rolled_back_expiry_logs_no_alert(self, db, caplog):
        await reserve_at(db, "A001", 0)
        failure = OperationalError("COMMIT", {}, Exception("connection lost"))

        with caplog.at_level(logging.WARNING, logger="smartpark.services.alert_service"):
            with patch.object(db, "commit", side_effect=failure):
                with pytest.raises(StoreUnavailable):
                    await state_machine.expire_reservation(db, "A001", now=T0 + timedelta(hours=1))

        assert not any("[ALERT]" in r.getMessage() for r in caplog.records)
        assert db.query(Alert).count() == 0
        db.expire_all()
        assert space_registry.get_space(db, "A001").status == "reserved"
