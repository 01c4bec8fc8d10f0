"""Liveness and database reachability."""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from quickpe import __version__
from quickpe.core.container import ApplicationContainer
from quickpe.interfaces.http.deps import get_container
from quickpe.schemas import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health(container: ApplicationContainer = Depends(get_container)) -> HealthResponse:
    database = "ok"
    try:
        async with container.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("Health check could not reach the database: %s", exc)
        database = "unavailable"
    return HealthResponse(
        status="ok" if database == "ok" else "degraded",
        environment=container.settings.environment,
        version=__version__,
        database=database,
    )
