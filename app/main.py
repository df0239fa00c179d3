"""
Main FastAPI application.

This is the entry point for the API server.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.core.config import settings
from app.db.session import engine
from app.errors import register_error_handlers
from app.routers import employee_import, health, payslip_batch

logger = logging.getLogger("app")


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for the FastAPI app.

    - On startup: configure logging.
    - On shutdown: drop the connection pool.
    """
    configure_logging()
    logger.info("Starting %s...", settings.APP_NAME)

    yield

    await engine.dispose()
    logger.info("Shutting down %s...", settings.APP_NAME)


# Create the FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="HR portal API: bulk employee import and batch payslip upload",
    version="0.1.0",
    lifespan=lifespan,
)

register_error_handlers(app)

# Include routers (API endpoints)
app.include_router(health.router, tags=["Health"])
app.include_router(employee_import.router)
app.include_router(payslip_batch.router)
