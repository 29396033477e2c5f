# app/main.py
"""
FastAPI application entry point.
Includes API key middleware, global error handlers, and all routers.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from app.routers import scans, buildings, sessions, anomalies, health
from app.database import SessionLocal, create_tables
from app.services.building_seed import seed_buildings
from app.config import settings
from app.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="Building Occupancy Ledger API",
    description="Badge scan ingestion, live building occupancy and session log.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional API key auth. Health check and docs stay open.
    Set API_KEY in .env. Leave empty to disable auth.
    """
    async def dispatch(self, request: Request, call_next):
        open_paths = {"/api/v1/health", "/docs", "/redoc", "/openapi.json"}
        if request.url.path in open_paths or not settings.API_KEY:
            return await call_next(request)

        api_key = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if api_key != settings.API_KEY:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Invalid or missing API key"},
            )
        return await call_next(request)


if settings.API_KEY:
    app.add_middleware(APIKeyMiddleware)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Global Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(scans.router,     prefix="/api/v1", tags=["Scans"])
app.include_router(buildings.router, prefix="/api/v1", tags=["Buildings"])
app.include_router(sessions.router,  prefix="/api/v1", tags=["Sessions"])
app.include_router(anomalies.router, prefix="/api/v1", tags=["Anomalies"])
app.include_router(health.router,    prefix="/api/v1", tags=["Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("Occupancy ledger starting up...")
    create_tables()
    logger.info("Database tables ready")
    if settings.SEED_BUILDINGS_ON_STARTUP:
        db = SessionLocal()
        try:
            seed_buildings(db)
        finally:
            db.close()
    logger.info(f"Display timezone: {settings.DISPLAY_TIMEZONE}")
    logger.info(f"Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")


@app.on_event("shutdown")
async def shutdown():
    logger.info("Occupancy ledger shutting down...")
