from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from boetepot.core.config import settings
from boetepot.core.database import get_session
from boetepot.schemas.public import PlayerHistory, PublicSummary
from boetepot.services import public_service

router = APIRouter(prefix="/public", tags=["public"])


@router.get("/summary", response_model=PublicSummary)
async def summary(
    recent: int = Query(default=settings.RECENT_FINES_LIMIT, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
):
    """Landing page data: total of all fines, most recent fines and the player list."""
    return await public_service.get_summary(session, recent_limit=recent)


@router.get("/players/{player_id}/history", response_model=PlayerHistory)
async def player_history(player_id: int, session: AsyncSession = Depends(get_session)):
    return await public_service.get_player_history(session, player_id)
