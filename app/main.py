import os
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import HTTPException

from app.config import settings
from app.database import init_db
from app.logging import log_config
from app.core.events import event_bus, XP_UPDATED, STREAK_UPDATED

# API Routes
from app.api import auth, users, activities, stats, follows, goals

logger = logging.getLogger(__name__)


def _log_xp_update(user_id: int, xp_total: int):
    logger.debug(f"xp-updated: user {user_id} now at {xp_total} XP")


def _log_streak_update(user_id: int, streak: int):
    logger.debug(f"streak-updated: user {user_id} streak is {streak}")


@asynccontextmanager
async def lifespan(app: FastAPI):

    # SETUP LOGGING
    # Each worker configures its own logger instance pointing to the same file.
    log_config.setup_logging(settings.log_level)

    init_db()

    event_bus.subscribe(XP_UPDATED, _log_xp_update)
    event_bus.subscribe(STREAK_UPDATED, _log_streak_update)

    worker_pid = os.getpid()
    logger.info(f"Worker process PID:{worker_pid} startup (Log Level: {settings.log_level})")

    yield

    # --- SHUTDOWN ---
    event_bus.unsubscribe(XP_UPDATED, _log_xp_update)
    event_bus.unsubscribe(STREAK_UPDATED, _log_streak_update)
    logger.info(f"Worker {worker_pid} shutting down...")


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    lifespan=lifespan,
)

# CORS middleware (adjust origins as needed)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Global exception handler
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=exc.headers  # Keeps 'WWW-Authenticate' on 401s
    )

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unexpected error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"}
    )


# --- ROUTER REGISTRATION ---
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(activities.router, prefix="/api/activities", tags=["activities"])
app.include_router(stats.router, prefix="/api/stats", tags=["stats"])
app.include_router(follows.router, prefix="/api/follows", tags=["follows"])
app.include_router(goals.router, prefix="/api/goals", tags=["goals"])


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "bookstreak"}
