import logging

from fastapi import FastAPI, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy import text

from mindtrack import __version__
from mindtrack.db.base import get_db
from mindtrack.core.config import settings
from mindtrack.core.logging import configure_logging
from mindtrack.schemas.common import ErrorResponse
from mindtrack.routers import auth as auth_router
from mindtrack.routers import habits as habits_router
from mindtrack.routers import completions as completions_router
from mindtrack.routers import moods as moods_router
from mindtrack.routers import analytics as analytics_router
from mindtrack.routers import ai as ai_router
from mindtrack.core.errors import (
    MindTrackException,
    mindtrack_exception_handler,
    validation_exception_handler,
    unhandled_exception_handler,
)

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="MindTrack API",
    description=(
        "**Habit and mood analytics**\n\n"
        "Records habit completions and mood entries, and derives streaks, "
        "completion rates, category stats, insights and habit suggestions.\n\n"
        "All error responses follow the `{code, message, details}` envelope."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Exception handlers (most specific first) ---
app.add_exception_handler(MindTrackException, mindtrack_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# --- Routers ---
# Every route may answer with the error envelope
error_responses = {
    404: {"model": ErrorResponse, "description": "Unknown user or habit."},
    422: {"model": ErrorResponse, "description": "Validation error or invalid argument."},
}
for r in (auth_router, habits_router, completions_router, moods_router, analytics_router, ai_router):
    app.include_router(r.router, responses=error_responses)

logger.info("MindTrack API %s ready (env=%s)", __version__, settings.APP_ENV)


@app.get("/health", tags=["health"], summary="Health check")
def health(db: Session = Depends(get_db)):
    """
    Returns `{"status": "ok", "db": "ok"}` when both the API and the database
    are reachable. Returns HTTP 503 if the DB is down.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "ok"
    except SQLAlchemyError as exc:
        logger.warning("Health check could not reach the database: %s", exc)
        db_status = "unreachable"

    if db_status != "ok":
        return JSONResponse(
            status_code=503,
            content={"status": "error", "db": db_status},
        )
    return {"status": "ok", "db": "ok", "env": settings.APP_ENV}
