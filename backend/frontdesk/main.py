"""Frontdesk - FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from frontdesk.core.api_client import ApiError, create_http_client
from frontdesk.core.cache import create_cache_registry
from frontdesk.core.config import get_settings
from frontdesk.core.env_validation import validate_environment
from frontdesk.core.locale import locale_redirect
from frontdesk.core.session import ANONYMOUS, LoginRequired, persist_session
from frontdesk.routers import (
    auth_router,
    rooms_router,
    bookings_router,
    profile_router,
    dashboard_router,
)
from frontdesk.models.enums import RoomStatus
from frontdesk.schemas.room import RoomSearchQuery
from frontdesk.services.booking_form import BookingFormError
from frontdesk.services.lifecycle import BookingTransitionError
from frontdesk.services.rooms import RoomService, get_room_service, to_room_card

# CRITICAL: Validate environment before proceeding
# This will hard-fail (exit 1) if configuration is invalid
validate_environment()

settings = get_settings()

logging.getLogger("frontdesk").setLevel(settings.log_level.upper())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup: one connection pool and one cache registry per process
    app.state.http = create_http_client(settings)
    app.state.cache_registry = create_cache_registry()
    yield
    # Shutdown
    await app.state.http.aclose()


app = FastAPI(
    title=settings.app_name,
    description="Hotel booking site and staff back office. Guest booking flow, booking lifecycle, stay records and room inventory backed by the hotel API.",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


@app.middleware("http")
async def persist_session_changes(request: Request, call_next):
    """Write refreshed or cleared credentials back as cookies."""
    response = await call_next(request)
    session = getattr(request.state, "session", None)
    persist_session(response, session, settings)
    if session is not None and session.original_fingerprint not in (ANONYMOUS, session.fingerprint):
        # Old credentials are gone; so is everything cached under them
        request.app.state.cache_registry.drop(session.original_fingerprint)
    return response


app.middleware("http")(locale_redirect)

# CORS - Dynamically configured from ALLOWED_ORIGINS environment variable
# In production, wildcard (*) is blocked by env_validation.py
allowed_origins = settings.origins

# Log resolved CORS origins at startup for visibility
print(f"🔒 CORS configured with origins: {allowed_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LoginRequired)
async def login_required_handler(request: Request, exc: LoginRequired):
    return RedirectResponse(exc.location, status_code=303)


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    # No HTTP response upstream means the hotel API is unreachable
    status_code = exc.status or 502
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "retryable": exc.retryable},
    )


@app.exception_handler(BookingTransitionError)
async def booking_transition_handler(request: Request, exc: BookingTransitionError):
    logger.info(f"[BOOKINGS] Rejected transition: {exc}")
    return JSONResponse(
        status_code=409,
        content={"detail": str(exc), "status": exc.status.value},
    )


@app.exception_handler(BookingFormError)
async def booking_form_handler(request: Request, exc: BookingFormError):
    return JSONResponse(
        status_code=422,
        content={"detail": "Please correct the highlighted fields.", "errors": exc.errors},
    )


# Page routers (every path starts with /{locale})
app.include_router(auth_router)
app.include_router(rooms_router)
app.include_router(bookings_router)
app.include_router(profile_router)
app.include_router(dashboard_router)  # Staff back office


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": settings.app_name}


@app.get("/{locale}")
async def home(locale: str, rooms: RoomService = Depends(get_room_service)):
    """Home page: featured (currently available) rooms."""
    if locale not in settings.locales:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    featured = await rooms.list_rooms(RoomSearchQuery(status=RoomStatus.AVAILABLE, limit=6))
    return {
        "service": settings.app_name,
        "locale": locale,
        "locales": settings.locales,
        "featured_rooms": [to_room_card(room) for room in featured.data.items] if featured.has_data else [],
    }
