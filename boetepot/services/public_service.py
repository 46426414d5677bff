from sqlalchemy.ext.asyncio import AsyncSession

from boetepot.schemas.player import PlayerRead
from boetepot.schemas.public import PlayerHistory, PublicSummary
from boetepot.services import fine_service, player_service
from boetepot.services.common import to_money


async def get_summary(session: AsyncSession, recent_limit: int = 5) -> PublicSummary:
    # Queries share one session, so they run one after another
    total = await fine_service.total_fines(session)
    recent = await fine_service.list_fines(session, limit=recent_limit)
    players = await player_service.list_players(session)
    return PublicSummary(
        total=total,
        recent_fines=recent,
        players=[PlayerRead.model_validate(p) for p in players],
    )


async def get_player_history(session: AsyncSession, player_id: int) -> PlayerHistory:
    player = await player_service.get_player(session, player_id)
    fines = await fine_service.list_fines(session, player_id=player_id)
    return PlayerHistory(
        player=PlayerRead.model_validate(player),
        fines=fines,
        total=sum((f.amount for f in fines), start=to_money(0)),
    )
