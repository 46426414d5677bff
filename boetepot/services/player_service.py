import logging
from typing import Iterable, List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from boetepot.core.exceptions import ErrorKind, PersistenceError
from boetepot.models.fine import Fine
from boetepot.models.player import Player
from boetepot.services.common import commit_or_raise, find_duplicates, normalize_entries, require_non_empty

logger = logging.getLogger(__name__)


async def list_players(session: AsyncSession) -> List[Player]:
    result = await session.execute(select(Player).order_by(Player.name))
    return result.scalars().all()


async def get_player(session: AsyncSession, player_id: int) -> Player:
    player = await session.get(Player, player_id)
    if not player:
        raise PersistenceError(ErrorKind.NOT_FOUND, "Player not found", {"player_id": player_id})
    return player


async def _existing_names(session: AsyncSession, names: List[str], exclude_id: int | None = None) -> List[str]:
    stmt = select(Player.name).where(Player.name.in_(names))
    if exclude_id is not None:
        stmt = stmt.where(Player.id != exclude_id)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def create_players(session: AsyncSession, names: Iterable[str]) -> List[Player]:
    """Insert a batch of players. Either every name is inserted or none is."""
    names = normalize_entries(names)
    require_non_empty(names, "player name")

    duplicates = find_duplicates(names) or await _existing_names(session, names)
    if duplicates:
        raise PersistenceError(ErrorKind.UNIQUE_VIOLATION, "Player name already exists", {"names": duplicates})

    players = [Player(name=name) for name in names]
    session.add_all(players)
    await commit_or_raise(session, "Player")
    for player in players:
        await session.refresh(player)

    logger.info("Players created", extra={"count": len(players)})
    return players


async def create_player(session: AsyncSession, name: str) -> Player:
    players = await create_players(session, [name])
    return players[0]


async def update_player(session: AsyncSession, player_id: int, name: str) -> Player:
    player = await get_player(session, player_id)
    name = (name or "").strip()
    if not name:
        raise PersistenceError(ErrorKind.INVALID, "Player name is required")

    if await _existing_names(session, [name], exclude_id=player_id):
        raise PersistenceError(ErrorKind.UNIQUE_VIOLATION, "Player name already exists", {"names": [name]})

    player.name = name
    session.add(player)
    await commit_or_raise(session, "Player")
    await session.refresh(player)
    logger.info("Player updated", extra={"player_id": player_id})
    return player


async def count_fines_for_player(session: AsyncSession, player_id: int) -> int:
    result = await session.execute(select(func.count(Fine.id)).where(Fine.player_id == player_id))
    return result.scalar_one()


async def delete_player(session: AsyncSession, player_id: int) -> None:
    player = await get_player(session, player_id)

    in_use = await count_fines_for_player(session, player_id)
    if in_use:
        raise PersistenceError(
            ErrorKind.REFERENTIAL_VIOLATION,
            "Player still has fines and cannot be deleted",
            {"player_id": player_id, "fines": in_use},
        )

    await session.delete(player)
    await commit_or_raise(session, "Player")
    logger.info("Player deleted", extra={"player_id": player_id})
