"""Main FastAPI application"""

from fastapi import FastAPI
from typing import Optional

from orderengine.core.config import Settings, get_settings
from orderengine.core.database import Database
from orderengine.core.events import lifespan
from orderengine.core.middleware import setup_middleware
from orderengine.api.v1 import api_router


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """
    Build the application

    Args:
        settings: Configuration, loaded from the environment when omitted
        database: Pre-built storage handle; the lifespan creates one otherwise
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Cart to order placement API",
        version=settings.APP_VERSION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.database = database

    setup_middleware(app)

    app.include_router(api_router, prefix="/api/v1")

    # Health check
    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "version": settings.APP_VERSION}

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "orderengine.main:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
