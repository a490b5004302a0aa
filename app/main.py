"""
Main FastAPI application.

This is the entry point for the API server.
"""

import logging

from fastapi import FastAPI
from contextlib import asynccontextmanager

from app.core.config import settings
from app.db.session import dispose_engine
from app.errors import AppError, app_error_handler
from app.routers import company_profile, health

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for the FastAPI app.

    - On startup: configure logging.
    - On shutdown: close pooled database connections.
    """
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting %s (row source: %s)", settings.APP_NAME, settings.ROW_SOURCE)

    yield  # The server runs while we're "yielded" here

    await dispose_engine()
    logger.info("Shutting down %s", settings.APP_NAME)


# Create the FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="Back-office trade intelligence API: schema-tolerant company profiles",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_exception_handler(AppError, app_error_handler)

# Include routers (API endpoints)
app.include_router(health.router, tags=["Health"])
app.include_router(company_profile.router)
