"""
Main FastAPI application.

This is the entry point for the API server.
"""

import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from app.core.config import settings
from app.errors import (
    AppError,
    ConfigurationError,
    app_error_handler,
    build_error_payload,
    validation_error_handler,
)
from app.routers import analysis, health, prospecting

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for the FastAPI app.

    Configures logging on startup; collaborators are built per request.
    """
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting %s...", settings.APP_NAME)

    yield  # The server runs while we're "yielded" here

    logger.info("Shutting down %s...", settings.APP_NAME)


async def configuration_error_handler(_, exc: ConfigurationError):
    logger.error("Configuration error: %s", exc)
    return JSONResponse(status_code=500, content=build_error_payload(str(exc)))


# Create the FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="URL crawl + language-model analysis pipeline with async jobs and a result cache",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(ConfigurationError, configuration_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)


# Include routers (API endpoints)
app.include_router(health.router, tags=["Health"])
app.include_router(prospecting.router)
app.include_router(analysis.router)
