"""
Common dependencies for FastAPI
"""

from typing import AsyncGenerator, Optional
from fastapi import Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel

from orderengine.core.database import Database


class PaginationParams(BaseModel):
    page: int = 1
    limit: int = 10


def get_database(request: Request) -> Database:
    """The process-wide Database built during application startup"""
    return request.app.state.database


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Create and yield database session
    Commits when the handler returns, rolls back if it raises
    """
    async with get_database(request).session() as session:
        yield session


def get_pagination_params(
    request: Request,
    page: int = Query(1, ge=1, description="Page number"),
    limit: Optional[int] = Query(None, ge=1, description="Page size")
) -> PaginationParams:
    """Get pagination parameters from query"""
    settings = request.app.state.settings
    if limit is None:
        limit = settings.DEFAULT_PAGE_SIZE
    return PaginationParams(page=page, limit=min(limit, settings.MAX_PAGE_SIZE))
