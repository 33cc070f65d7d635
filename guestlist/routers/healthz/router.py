import logging
from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from guestlist.config.database import async_session_manager

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthCheckResponse(BaseModel):
    status: str
    database: str
    version: str = "0.1.0"


async def ping_database() -> bool:
    try:
        async with async_session_manager() as session:
            await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError):
        logger.exception("Database health check failed")
        return False
    return True


def get_database_check() -> Callable[[], Awaitable[bool]]:
    return ping_database


@router.get("/", response_model=HealthCheckResponse)
async def health_check(
    database_check: Callable[[], Awaitable[bool]] = Depends(get_database_check),
) -> HealthCheckResponse:
    """
    Health check endpoint. Reports degraded instead of failing when the database is down.
    """
    if await database_check():
        return HealthCheckResponse(status="healthy", database="ok")
    return HealthCheckResponse(status="degraded", database="unavailable")
