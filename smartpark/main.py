# smartpark/main.py
"""
FastAPI application entry point.
Builds the app, owns the store lifecycle (startup / shutdown), maps domain
errors to HTTP responses and optionally runs the periodic expiry sweeper.
"""

import asyncio
import time

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from smartpark.config import Settings, settings
from smartpark.database import Database
from smartpark.errors import ParkingError
from smartpark.routers import parking, sessions, alerts, stats, health
from smartpark.services.expiry_sweeper import run_periodic_sweeper
from smartpark.utils.logger import get_logger

logger = get_logger(__name__)

API_PREFIX = "/api"


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional API key guard on every state-changing request.
    Reads stay open for the dashboard; health is always open.
    """
    open_methods = {"GET", "HEAD", "OPTIONS"}

    def __init__(self, app, api_key: str):
        super().__init__(app)
        self.api_key = api_key

    async def dispatch(self, request: Request, call_next):
        if request.method in self.open_methods or request.url.path == f"{API_PREFIX}/health":
            return await call_next(request)

        api_key = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if api_key != self.api_key:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"error": "Invalid or missing API key"},
            )
        return await call_next(request)


def _describe_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts)


def create_app(app_settings: Settings = settings) -> FastAPI:
    app = FastAPI(
        title="SmartPark API",
        description="Parking space registry, reservation state machine and audit history.",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # ── CORS (web frontend calls the API directly) ──────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if app_settings.API_KEY:
        app.add_middleware(APIKeyMiddleware, api_key=app_settings.API_KEY)

    # ── Request Timing Middleware ────────────────────────────────────────────
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.time()
        response = await call_next(request)
        duration = round((time.time() - start) * 1000, 2)
        logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
        return response

    # ── Exception Handlers ───────────────────────────────────────────────────
    @app.exception_handler(ParkingError)
    async def parking_error_handler(request: Request, exc: ParkingError):
        if exc.http_status >= 500:
            logger.error(f"{exc.__class__.__name__} on {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.http_status, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": f"Invalid request: {_describe_validation_errors(exc)}"},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(OperationalError)
    async def store_error_handler(request: Request, exc: OperationalError):
        logger.error(f"Store failure on {request.url.path}: {exc.__class__.__name__}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Store unavailable"},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )

    # ── Routers ──────────────────────────────────────────────────────────────
    app.include_router(parking.router,  prefix=API_PREFIX, tags=["🅿️  Parking spaces"])
    app.include_router(sessions.router, prefix=API_PREFIX, tags=["🚗 Sessions"])
    app.include_router(alerts.router,   prefix=API_PREFIX, tags=["🔔 Alerts"])
    app.include_router(stats.router,    prefix=API_PREFIX, tags=["📊 Stats"])
    app.include_router(health.router,   prefix=API_PREFIX, tags=["💚 Health"])

    # ── Startup / Shutdown ───────────────────────────────────────────────────
    @app.on_event("startup")
    async def startup():
        logger.info("🚀 SmartPark backend starting up...")
        database = Database(app_settings)
        database.create_tables()
        app.state.db = database
        logger.info("✅ Database tables ready")

        app.state.sweeper_task = None
        interval = app_settings.EXPIRY_SWEEP_INTERVAL_SECONDS
        if interval > 0:
            app.state.sweeper_task = asyncio.create_task(run_periodic_sweeper(database, interval))
        else:
            logger.info("⏱  Periodic expiry sweep disabled, use POST /api/parking/cleanup-expired")
        logger.info(f"🌐 Listening on http://{app_settings.BACKEND_IP}:{app_settings.BACKEND_PORT}")

    @app.on_event("shutdown")
    async def shutdown():
        logger.info("🛑 SmartPark backend shutting down...")
        task = getattr(app.state, "sweeper_task", None)
        if task:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        database = getattr(app.state, "db", None)
        if database:
            database.dispose()

    return app


app = create_app()
