# opportunity_board/main.py - COMPLETE MAIN FILE
import asyncio
import logging
from datetime import datetime, UTC

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from opportunity_board.api import (
    admin,
    applications,
    auth,
    categories,
    cron,
    friends,
    messages,
    notification,
    opportunities,
    organizations,
    participations,
    profile,
    telegram,
    users,
)
from opportunity_board.config import settings
from opportunity_board.database import Base, SessionLocal, engine
from opportunity_board.errors import ServiceError

logging.basicConfig(
    level="DEBUG" if settings.DEBUG else settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create database tables
Base.metadata.create_all(bind=engine)

# Initialize FastAPI app
app = FastAPI(title=f"{settings.APP_NAME} API")

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ─────────────────────────────────────────
# Error handlers: every failure is {"error": ...}
# ─────────────────────────────────────────

@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = []
    for err in exc.errors():
        loc = err.get("loc") or ()
        details.append({
            "field": ".".join(str(part) for part in loc if part != "body"),
            "message": err.get("msg", "Invalid value"),
        })
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request data", "details": details},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# API routers
app.include_router(auth.router)           # /auth/*
app.include_router(users.router)          # /users/*
app.include_router(friends.router)        # /friends/*
app.include_router(organizations.router)  # /organizations/*
app.include_router(categories.router)     # /categories
app.include_router(opportunities.router)  # /opportunities/*
app.include_router(participations.router) # /participations/*
app.include_router(applications.router)   # /applications/*
app.include_router(profile.router)        # /profile/*
app.include_router(notification.router)   # /notifications/*
app.include_router(messages.router)       # /messages/*
app.include_router(admin.router)          # /admin/*
app.include_router(cron.router)           # /cron/*
app.include_router(telegram.router)       # /telegram/*


def _ping_database() -> None:
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
    finally:
        db.close()


@app.get("/health")
async def health_check():
    timestamp = datetime.now(UTC).isoformat()
    try:
        await asyncio.wait_for(
            run_in_threadpool(_ping_database),
            timeout=settings.HEALTH_CHECK_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError:
        logger.error("Health check timed out after %ss", settings.HEALTH_CHECK_TIMEOUT_SECONDS)
        return JSONResponse(
            status_code=503,
            content={"status": "error", "error": "Database check timed out", "timestamp": timestamp},
        )
    except Exception as exc:
        logger.error("Health check failed: %s", exc)
        return JSONResponse(
            status_code=503,
            content={"status": "error", "error": "Database unavailable", "timestamp": timestamp},
        )

    return {
        "status": "ok",
        "timestamp": timestamp,
        "environment": settings.APP_ENV,
    }
