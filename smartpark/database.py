# smartpark/database.py
"""
Database connection, session management, and table creation.
Uses SQLAlchemy with PostgreSQL (SQLite works for local runs and tests).

The Database object is built by the process entry point and handed to
whoever needs it; nothing here opens a connection at import time.
"""

from contextlib import contextmanager

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from smartpark.config import Settings
from smartpark.errors import StoreUnavailable
from smartpark.utils.locks import SpaceLocks

Base = declarative_base()


class Database:
    """Owns the engine, the session factory and the per-space write locks."""

    def __init__(self, settings: Settings):
        self.url = settings.DATABASE_URL
        timeout = settings.STORE_TIMEOUT_SECONDS
        self.locks = SpaceLocks()

        if self.url.startswith("sqlite"):
            engine_kwargs = {"connect_args": {"check_same_thread": False, "timeout": timeout}}
            if ":memory:" in self.url or self.url.rstrip("/") == "sqlite:":
                engine_kwargs["poolclass"] = StaticPool   # One shared in-memory DB
        else:
            engine_kwargs = {
                "pool_pre_ping": True,          # Auto-reconnect if DB connection drops
                "pool_size": 10,
                "max_overflow": 20,
                "pool_timeout": timeout,
                "connect_args": {
                    "connect_timeout": timeout,
                    "options": f"-c statement_timeout={timeout * 1000}",
                },
            }

        self.engine = create_engine(self.url, echo=False, **engine_kwargs)
        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, bind=self.engine,
            info={"space_locks": self.locks},
        )

    def session(self):
        return self.SessionLocal()

    def create_tables(self):
        """
        Creates all DB tables. Safe to call multiple times.
        Import all models here so SQLAlchemy knows about them.
        """
        from smartpark.models.parking_space import ParkingSpace            # noqa
        from smartpark.models.space_status_history import SpaceStatusHistory  # noqa
        from smartpark.models.parking_session import ParkingSession        # noqa
        from smartpark.models.alert import Alert                           # noqa

        Base.metadata.create_all(bind=self.engine)

    def dispose(self):
        self.engine.dispose()


def get_db(request: Request):
    """FastAPI dependency — yields a DB session and closes it after request."""
    db = request.app.state.db.session()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def store_guard(db):
    """
    Rolls back on any failure so nothing is half-written.
    Connection failures and timeouts surface as StoreUnavailable.
    """
    try:
        yield
    except (OperationalError, PoolTimeoutError) as e:
        db.rollback()
        raise StoreUnavailable(f"Store unavailable: {e.__class__.__name__}") from e
    except Exception:
        db.rollback()
        raise
