# tests/conftest.py
"""Shared fixtures: a fresh in-memory SQLite store per test."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
os.environ.setdefault("LOG_TO_FILE", "false")

import pytest
from datetime import datetime
from smartpark.config import Settings
from smartpark.database import Database
from smartpark.models.parking_space import ParkingSpace


def sqlite_settings(**overrides):
    values = {"DATABASE_URL": "sqlite://", "LOG_TO_FILE": False, "API_KEY": None,
              "EXPIRY_SWEEP_INTERVAL_SECONDS": 0}
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def database():
    database = Database(sqlite_settings())
    database.create_tables()
    yield database
    database.dispose()


@pytest.fixture
def db(database):
    session = database.session()
    yield session
    session.close()


def add_space(db, number="A001", vehicle_type="car", zone=None, status="free"):
    now = datetime(2026, 1, 1, 8, 0, 0)
    space = ParkingSpace(number=number, zone=zone or number[0], vehicle_type=vehicle_type,
                         status=status, created_at=now, updated_at=now)
    db.add(space)
    db.commit()
    return space
