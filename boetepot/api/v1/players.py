from typing import List
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from boetepot.core.database import get_session
from boetepot.core.security import require_admin
from boetepot.schemas.player import PlayerBatchCreate, PlayerCreate, PlayerRead, PlayerUpdate
from boetepot.services import player_service

router = APIRouter(prefix="/players", tags=["players"])


@router.get("", response_model=List[PlayerRead])
async def get_players(session: AsyncSession = Depends(get_session)):
    return await player_service.list_players(session)


@router.post("", response_model=PlayerRead, status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_admin)])
async def create_player(payload: PlayerCreate, session: AsyncSession = Depends(get_session)):
    return await player_service.create_player(session, payload.name)


@router.post(
    "/batch",
    response_model=List[PlayerRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_players(payload: PlayerBatchCreate, session: AsyncSession = Depends(get_session)):
    """Create several players at once; a single duplicate rejects the whole batch."""
    return await player_service.create_players(session, payload.names)


@router.get("/{player_id}", response_model=PlayerRead)
async def get_player(player_id: int, session: AsyncSession = Depends(get_session)):
    return await player_service.get_player(session, player_id)


@router.patch("/{player_id}", response_model=PlayerRead, dependencies=[Depends(require_admin)])
async def update_player(player_id: int, payload: PlayerUpdate, session: AsyncSession = Depends(get_session)):
    return await player_service.update_player(session, player_id, payload.name)


@router.delete("/{player_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_admin)])
async def delete_player(player_id: int, session: AsyncSession = Depends(get_session)):
    await player_service.delete_player(session, player_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
