# app/main.py
"""
FastAPI application entry point.
Includes security middleware, engine error handlers, and all routers.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from app.routers import zones, reports, schedules, achievements, users, health
from app.database import create_tables
from app.config import settings
from sqlalchemy.exc import IntegrityError
from app.exceptions import (AlreadyInState, ConcurrencyConflict, InvalidAssignee,
                            InvalidTransition, NotFound)
from app.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="EcoSmart Waste API",
    description="Zone fill tracking, report verification, collection scheduling and citizen rewards.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (allow the citizen / admin front-ends to call the API) ──────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # Restrict to front-end origins in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional lightweight API key auth. Identity and roles are handled upstream;
    this only keeps the API off the open network. Leave API_KEY empty to disable.
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


# ── Engine Error Handlers ────────────────────────────────────────────────────
@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(InvalidTransition)
async def invalid_transition_handler(request: Request, exc: InvalidTransition):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": str(exc), "current": exc.current, "requested": exc.target},
    )


@app.exception_handler(AlreadyInState)
async def already_in_state_handler(request: Request, exc: AlreadyInState):
    # Idempotent repeat: report success without touching the record
    return JSONResponse(status_code=status.HTTP_200_OK,
                        content={"status": "unchanged", "state": exc.state, "detail": str(exc)})


@app.exception_handler(InvalidAssignee)
async def invalid_assignee_handler(request: Request, exc: InvalidAssignee):
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"detail": str(exc)})


@app.exception_handler(ConcurrencyConflict)
async def concurrency_conflict_handler(request: Request, exc: ConcurrencyConflict):
    logger.warning(f"Concurrency conflict on {request.url.path}: {exc}")
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                        content={"detail": str(exc)}, headers={"Retry-After": "1"})


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning(f"Constraint violation on {request.url.path}: {exc.orig}")
    return JSONResponse(status_code=status.HTTP_409_CONFLICT,
                        content={"detail": "Request conflicts with existing data"})


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"detail": str(exc)})


# ── Global Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(zones.router,        prefix="/api/v1", tags=["🗑️ Zones"])
app.include_router(reports.router,      prefix="/api/v1", tags=["📝 Reports"])
app.include_router(schedules.router,    prefix="/api/v1", tags=["🚛 Schedules"])
app.include_router(achievements.router, prefix="/api/v1", tags=["🏆 Achievements"])
app.include_router(users.router,        prefix="/api/v1", tags=["👤 Users"])
app.include_router(health.router,       prefix="/api/v1", tags=["💚 Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 EcoSmart Backend starting up...")
    create_tables()
    logger.info("✅ Database tables ready")
    logger.info(f"🎯 Thresholds: critical={settings.CRITICAL_FILL_PERCENT}% warning={settings.WARNING_FILL_PERCENT}%")
    logger.info(f"🌐 Listening on http://{settings.BACKEND_HOST}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 EcoSmart Backend shutting down...")
