import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from boetepot.core.config import settings
from boetepot.core.database import get_session

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    status: str = "ok"
    app: str = settings.APP_NAME
    database: str = "ok"


@router.get("/health", response_model=HealthResponse, tags=["health"], responses={503: {"model": HealthResponse}})
async def health_check(session: AsyncSession = Depends(get_session)):
    """Liveness plus a round trip to the fine database."""
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.warning("Health check could not reach the database", exc_info=True)
        body = HealthResponse(status="degraded", database="unavailable")
        return JSONResponse(body.model_dump(), status_code=503)
    return HealthResponse()
