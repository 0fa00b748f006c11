from fastapi import FastAPI, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from pulsebloom.db.base import get_db
from pulsebloom.core.config import settings
from pulsebloom.core.logging import configure_logging
from pulsebloom.routers import mood as mood_router
from pulsebloom.routers import habits as habits_router
from pulsebloom.routers import insights as insights_router
from pulsebloom.routers import reminders as reminders_router
from pulsebloom.core.errors import (
    PulseException,
    pulse_exception_handler,
    validation_exception_handler,
    unhandled_exception_handler,
)

configure_logging()

app = FastAPI(
    title="PulseBloom Analytics API",
    description=(
        "**Behavioral analytics for mood and habit logs**\n\n"
        "Streaks, heatmaps, monthly summaries, weekly and rolling trends, "
        "burnout risk and cached language-model insights.\n\n"
        "The caller is identified by the `X-User-Id` header. "
        "All error responses follow the `{code, message, details}` envelope."
    ),
    version="1.0.0",
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
app.add_exception_handler(PulseException, pulse_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# --- Routers ---
app.include_router(mood_router.router)
app.include_router(habits_router.router)
app.include_router(insights_router.router)
app.include_router(reminders_router.router)


@app.get("/health", tags=["health"], summary="Health check")
def health(db: Session = Depends(get_db)):
    """
    Returns `{"status": "ok", "db": "ok"}` when both the API and the database
    are reachable. Returns HTTP 503 if the DB is down.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "ok"
    except SQLAlchemyError:
        db_status = "unreachable"

    if db_status != "ok":
        return JSONResponse(
            status_code=503,
            content={"status": "error", "db": db_status},
        )
    return {"status": "ok", "db": "ok", "env": settings.APP_ENV}
