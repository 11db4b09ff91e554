# tests/test_space_registry.py
"""Unit tests for the space registry (layout generation, lookups)."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import asyncio
import random
import pytest
from collections import Counter
from smartpark.errors import NotFound, ValidationError
from smartpark.models.space_status_history import SpaceStatusHistory
from smartpark.services import space_registry
from tests.conftest import add_space


class TestBuildLayout:
    def test_even_split_across_five_zones(self):
        layout = space_registry.build_layout(10, 5, random.Random(1))
        zones = Counter(zone for _, zone, _ in layout)
        assert len(layout) == 10
        assert zones == {"A": 2, "B": 2, "C": 2, "D": 2, "E": 2}

    def test_zones_fill_in_order_with_ceiling_per_zone(self):
        layout = space_registry.build_layout(12, 5, random.Random(1))
        zones = Counter(zone for _, zone, _ in layout)
        assert zones == {"A": 3, "B": 3, "C": 3, "D": 3}

    def test_last_zone_takes_what_is_left(self):
        layout = space_registry.build_layout(7, 5, random.Random(1))
        zones = Counter(zone for _, zone, _ in layout)
        assert zones == {"A": 2, "B": 2, "C": 2, "D": 1}
        assert len(layout) == 7

    def test_numbers_are_padded_per_zone(self):
        layout = space_registry.build_layout(6, 2, random.Random(1))
        assert [number for number, _, _ in layout] == ["A001", "A002", "A003", "B001", "B002", "B003"]

    def test_fewer_spaces_than_zones(self):
        layout = space_registry.build_layout(3, 5, random.Random(1))
        assert [number for number, _, _ in layout] == ["A001", "B001", "C001"]

    def test_vehicle_type_follows_draw(self):
        class FixedRng:
            def __init__(self, rolls):
                self.rolls = iter(rolls)

            def random(self):
                return next(self.rolls)

        layout = space_registry.build_layout(3, 1, FixedRng([0.1, 0.75, 0.95]))
        assert [t for _, _, t in layout] == ["car", "truck", "motorcycle"]

    def test_ratio_is_roughly_seventy_twenty_ten(self):
        layout = space_registry.build_layout(5000, 5, random.Random(42))
        types = Counter(t for _, _, t in layout)
        assert 0.65 < types["car"] / 5000 < 0.75
        assert 0.15 < types["truck"] / 5000 < 0.25
        assert 0.07 < types["motorcycle"] / 5000 < 0.13

    @pytest.mark.parametrize("total, zones", [(0, 5), (-3, 5), (10, 27)])
    def test_invalid_layout_rejected(self, total, zones):
        with pytest.raises(ValidationError):
            space_registry.build_layout(total, zones)


class TestGenerate:
    @pytest.mark.asyncio
    async def test_generate_creates_spaces_and_creation_history(self, db):
        spaces = await space_registry.generate(db, 10, 5, rng=random.Random(7))

        assert len(spaces) == 10
        listed = space_registry.list_spaces(db)
        assert [s.number for s in listed] == sorted(s.number for s in listed)
        assert all(s.status == "free" and s.reservation is None for s in listed)

        history = db.query(SpaceStatusHistory).all()
        assert len(history) == 10
        assert {h.action for h in history} == {"creation"}
        assert {h.previous_status for h in history} == {"none"}
        assert all(h.space_metadata["zone"] == h.space_number[0] for h in history)

    @pytest.mark.asyncio
    async def test_generate_replaces_existing_registry(self, db):
        add_space(db, "Z999")
        await space_registry.generate(db, 4, 2, rng=random.Random(7))

        numbers = [s.number for s in space_registry.list_spaces(db)]
        assert numbers == ["A001", "A002", "B001", "B002"]

    @pytest.mark.asyncio
    async def test_concurrent_regenerations_apply_one_after_the_other(self, database):
        first, second = database.session(), database.session()
        await asyncio.gather(
            space_registry.generate(first, 10, 5, rng=random.Random(1)),
            space_registry.generate(second, 4, 2, rng=random.Random(2)),
        )
        first.close()
        second.close()

        check = database.session()
        assert [s.number for s in space_registry.list_spaces(check)] == ["A001", "A002", "B001", "B002"]
        assert check.query(SpaceStatusHistory).count() == 14
        check.close()


class TestLookups:
    def test_get_unknown_space_raises_not_found(self, db):
        with pytest.raises(NotFound):
            space_registry.get_space(db, "X001")

    def test_list_filters_by_zone_and_status(self, db):
        add_space(db, "A001")
        add_space(db, "A002", status="out-of-service")
        add_space(db, "B001")

        assert [s.number for s in space_registry.list_spaces(db, zone="A")] == ["A001", "A002"]
        assert [s.number for s in space_registry.list_spaces(db, status="free")] == ["A001", "B001"]
        assert [s.number for s in space_registry.list_spaces(db, zone="A", status="free")] == ["A001"]
