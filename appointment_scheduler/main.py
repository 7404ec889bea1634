import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from appointment_scheduler.api.routes import appointments, availabilities, health
from appointment_scheduler.core.config import _ENV_FILE, settings
from appointment_scheduler.core.db import init_db
from appointment_scheduler.core.errors import InternalError, InvalidInput, SchedulingError

if os.getenv("ENV") != "production":
    logging.basicConfig(level=logging.DEBUG)
else:
    logging.basicConfig(
        level=settings.log_level,
        format='{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}',
    )
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Loading .env from: %s (exists: %s)", _ENV_FILE, _ENV_FILE.exists())
    if settings.env == "development":
        # Alembic owns the schema everywhere else
        await init_db()
        logger.info("Development database tables ensured")
    if not settings.feed_enabled:
        logger.warning("Availability feed: NOT configured. Set FEED_BASE_URL in %s to run the sync job", _ENV_FILE)
    yield


app = FastAPI(
    title="Appointment Scheduler API",
    description="Provider availability listing, appointment booking and cancellation",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type"],
)

app.include_router(health.router)
app.include_router(availabilities.router, prefix="/api/v1")
app.include_router(appointments.router, prefix="/api/v1")


def _cors_headers(request: Request) -> dict[str, str]:
    # Handlers bypass CORSMiddleware on 500s; browsers would hide the error body
    allowed = settings.cors_origins_list
    origin = request.headers.get("origin")
    headers = {"Access-Control-Allow-Credentials": "true"}
    if allowed:
        headers["Access-Control-Allow-Origin"] = origin if origin in allowed else allowed[0]
    return headers


def _error_response(request: Request, exc: SchedulingError) -> JSONResponse:
    return JSONResponse(
        jsonable_encoder(exc.to_dict()),
        status_code=exc.status_code,
        headers=_cors_headers(request),
    )


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    return _error_response(request, exc)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Missing fields and non-ISO datetimes are plain bad input, not 422s."""
    error = InvalidInput(
        "Invalid request parameters. Use ISO8601 datetimes (e.g., 2025-10-15T09:00:00Z)",
        details={"errors": exc.errors()},
    )
    return _error_response(request, error)


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Storage failure: %s", exc)
    return _error_response(request, InternalError())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, HTTPException):
        return JSONResponse({"detail": exc.detail}, status_code=exc.status_code, headers=_cors_headers(request))
    logger.exception("Unhandled exception on %s %s: %s", request.method, request.url.path, exc)
    return _error_response(request, InternalError(f"{type(exc).__name__}: {exc}"))
