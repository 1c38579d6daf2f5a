"""
Application lifecycle events
Handles startup and shutdown tasks
"""

from fastapi import FastAPI
from contextlib import asynccontextmanager
import logging

from .database import Database
from .logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager
    Builds the Database on startup and disposes it on shutdown
    """
    settings = app.state.settings
    setup_logging(settings)
    logger.info(f"Starting {settings.APP_NAME}...")

    owns_database = getattr(app.state, "database", None) is None
    if owns_database:
        app.state.database = Database.from_settings(settings)

    try:
        if settings.ENVIRONMENT != "test":
            await app.state.database.create_all()
            logger.info("Database initialized")

        logger.info(f"{settings.APP_NAME} started successfully")
        yield
    finally:
        logger.info(f"Shutting down {settings.APP_NAME}...")
        if owns_database:
            await app.state.database.dispose()
            app.state.database = None
        logger.info("Shutdown complete")
