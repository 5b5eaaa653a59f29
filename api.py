"""
MentorHub FastAPI Application

Main entry point for the MentorHub API: mentorship circles with
capacity, waitlists and creator/mentor governance.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

# Common library imports
from common.database import MongoDB
from common.utils import StoreException, success_response

# App-specific imports
from mentorhub import __version__
from mentorhub.config import settings
from mentorhub.database import ensure_indexes
from mentorhub.services.revalidation import PathRevalidator, WebhookListener

# Import routers
from mentorhub.routers import (
    circles_router,
    applications_router,
    pitches_router,
    mentors_router,
    room_router,
    users_router,
)

# Import service initialization
from mentorhub.dependencies import init_all_services

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Database Instance
# =============================================================================
main_db = MongoDB()


# =============================================================================
# Application Lifespan
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown tasks like database connections
    and service initialization.
    """
    # Startup
    logger.info("Starting MentorHub API...")
    settings.validate_required()

    await main_db.connect(
        uri=settings.MONGODB_URI,
        database_name=settings.MONGODB_DATABASE,
    )
    await ensure_indexes(main_db.db)
    logger.info(f"Connected to database: {settings.MONGODB_DATABASE}")

    revalidator = PathRevalidator()
    if settings.REVALIDATE_ENABLED:
        revalidator.subscribe(
            WebhookListener(settings.get_revalidate_url(), settings.REVALIDATE_SECRET)
        )
        logger.info(f"Forwarding revalidations to {settings.get_revalidate_url()}")

    init_all_services(
        db=main_db.db,
        jwt_secret=settings.JWT_SECRET,
        revalidator=revalidator,
        jwt_algorithm=settings.JWT_ALGORITHM,
        access_token_expire_minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES,
        default_capacity=settings.DEFAULT_CIRCLE_CAPACITY,
        default_duration_weeks=settings.DEFAULT_DURATION_WEEKS,
    )
    logger.info("MentorHub API started successfully!")

    yield

    # Shutdown
    logger.info("Shutting down MentorHub API...")
    await main_db.disconnect()


# =============================================================================
# FastAPI Application
# =============================================================================
app = FastAPI(
    title="MentorHub API",
    description="Mentorship circles: applications, waitlists and capacity governance",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.is_development() else None,
    redoc_url="/redoc" if settings.is_development() else None,
)

# =============================================================================
# CORS Middleware
# =============================================================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Store errors
# =============================================================================
@app.exception_handler(PyMongoError)
async def store_error_handler(request: Request, exc: PyMongoError):
    """Any store failure surfaces as STORE_ERROR; earlier writes are not rolled back."""
    logger.error(f"Store error on {request.method} {request.url.path}: {exc}")
    error = StoreException()
    return JSONResponse(
        status_code=error.status_code,
        content={"detail": error.detail},
    )


# =============================================================================
# Include Routers (all under /api/v1 prefix)
# =============================================================================
API_PREFIX = "/api/v1"

app.include_router(circles_router, prefix=API_PREFIX)
app.include_router(applications_router, prefix=API_PREFIX)
app.include_router(pitches_router, prefix=API_PREFIX)
app.include_router(mentors_router, prefix=API_PREFIX)
app.include_router(room_router, prefix=API_PREFIX)
app.include_router(users_router, prefix=API_PREFIX)


# =============================================================================
# Health Check Endpoint
# =============================================================================
@app.get("/health", tags=["Health"])
async def health():
    """Returns the status of the API and database connection."""
    return success_response({
        "status": "ok",
        "version": __version__,
        "database": main_db.is_connected,
    })


# =============================================================================
# Run with Uvicorn
# =============================================================================
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development(),
    )
