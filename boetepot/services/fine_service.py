import datetime as dt
import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from boetepot.core.exceptions import ErrorKind, PersistenceError
from boetepot.models.fine import Fine
from boetepot.models.player import Player
from boetepot.models.reason import Reason
from boetepot.schemas.fine import FineView
from boetepot.services.common import check_amount, commit_or_raise, to_money

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("player_id", "reason_id", "amount", "date", "admin_notes")


def _fine_view_query():
    # Read-side join: a fine together with its player's name and reason's description
    return (
        select(
            Fine.id,
            Fine.player_id,
            Player.name.label("player_name"),
            Fine.reason_id,
            Reason.description.label("reason_description"),
            Fine.amount,
            Fine.date,
            Fine.admin_notes,
        )
        .select_from(Fine)
        .join(Player, Player.id == Fine.player_id)
        .join(Reason, Reason.id == Fine.reason_id)
    )


def _to_view(row) -> FineView:
    data = dict(row._mapping)
    data["amount"] = to_money(data["amount"])
    return FineView(**data)


def _clean_notes(notes: Optional[str]) -> Optional[str]:
    if notes is None:
        return None
    return notes.strip() or None


async def list_fines(
    session: AsyncSession,
    player_id: Optional[int] = None,
    limit: Optional[int] = None,
) -> List[FineView]:
    """Fines newest first, optionally for one player or capped to the N most recent."""
    stmt = _fine_view_query().order_by(Fine.date.desc(), Fine.id.desc())
    if player_id is not None:
        stmt = stmt.where(Fine.player_id == player_id)
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await session.execute(stmt)
    return [_to_view(row) for row in result.all()]


async def get_fine(session: AsyncSession, fine_id: int) -> Fine:
    fine = await session.get(Fine, fine_id)
    if not fine:
        raise PersistenceError(ErrorKind.NOT_FOUND, "Fine not found", {"fine_id": fine_id})
    return fine


async def get_fine_view(session: AsyncSession, fine_id: int) -> FineView:
    result = await session.execute(_fine_view_query().where(Fine.id == fine_id))
    row = result.first()
    if row is None:
        raise PersistenceError(ErrorKind.NOT_FOUND, "Fine not found", {"fine_id": fine_id})
    return _to_view(row)


async def total_fines(session: AsyncSession, player_id: Optional[int] = None) -> Decimal:
    stmt = select(func.coalesce(func.sum(Fine.amount), 0))
    if player_id is not None:
        stmt = stmt.where(Fine.player_id == player_id)
    result = await session.execute(stmt)
    return to_money(result.scalar_one())


async def _require_reason(session: AsyncSession, reason_id: int) -> Reason:
    reason = await session.get(Reason, reason_id)
    if not reason:
        raise PersistenceError(ErrorKind.REFERENTIAL_VIOLATION, "Reason does not exist", {"reason_id": reason_id})
    return reason


async def _require_players(session: AsyncSession, player_ids: List[int]) -> None:
    result = await session.execute(select(Player.id).where(Player.id.in_(player_ids)))
    found = set(result.scalars().all())
    missing = [pid for pid in player_ids if pid not in found]
    if missing:
        raise PersistenceError(ErrorKind.REFERENTIAL_VIOLATION, "Player does not exist", {"player_ids": missing})


async def create_fines(
    session: AsyncSession,
    player_ids: Iterable[int],
    reason_id: int,
    amount: Optional[Decimal] = None,
    date: Optional[dt.date] = None,
    admin_notes: Optional[str] = None,
) -> List[Fine]:
    """One fine per selected player, all sharing reason, amount, date and note.

    The amount falls back to the reason's default. The batch is written in a
    single transaction: a bad reference rejects every fine in it.
    """
    player_ids = list(dict.fromkeys(player_ids))
    if not player_ids:
        raise PersistenceError(ErrorKind.INVALID, "At least one player is required")

    reason = await _require_reason(session, reason_id)
    await _require_players(session, player_ids)

    amount = check_amount(reason.amount if amount is None else amount)
    date = date or dt.date.today()
    notes = _clean_notes(admin_notes)

    fines = [
        Fine(player_id=pid, reason_id=reason_id, amount=amount, date=date, admin_notes=notes)
        for pid in player_ids
    ]
    session.add_all(fines)
    await commit_or_raise(session, "Fine")
    for fine in fines:
        await session.refresh(fine)

    logger.info(
        "Fines created",
        extra={"count": len(fines), "reason_id": reason_id, "amount": str(amount)},
    )
    return fines


async def create_fine(
    session: AsyncSession,
    player_id: int,
    reason_id: int,
    amount: Optional[Decimal] = None,
    date: Optional[dt.date] = None,
    admin_notes: Optional[str] = None,
) -> Fine:
    fines = await create_fines(session, [player_id], reason_id, amount=amount, date=date, admin_notes=admin_notes)
    return fines[0]


async def update_fine(session: AsyncSession, fine_id: int, changes: Dict[str, Any]) -> Fine:
    """Apply only the fields present in ``changes``; ``admin_notes=None`` clears the note."""
    fine = await get_fine(session, fine_id)

    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise PersistenceError(ErrorKind.INVALID, "Unknown fine fields", {"fields": sorted(unknown)})

    for field in ("player_id", "reason_id", "amount", "date"):
        if field in changes and changes[field] is None:
            raise PersistenceError(ErrorKind.INVALID, f"{field} cannot be empty", {"field": field})

    if "player_id" in changes:
        await _require_players(session, [changes["player_id"]])
        fine.player_id = changes["player_id"]
    if "reason_id" in changes:
        await _require_reason(session, changes["reason_id"])
        fine.reason_id = changes["reason_id"]
    if "amount" in changes:
        fine.amount = check_amount(changes["amount"])
    if "date" in changes:
        fine.date = changes["date"]
    if "admin_notes" in changes:
        fine.admin_notes = _clean_notes(changes["admin_notes"])

    session.add(fine)
    await commit_or_raise(session, "Fine")
    await session.refresh(fine)
    logger.info("Fine updated", extra={"fine_id": fine_id, "fields": sorted(changes)})
    return fine


async def delete_fine(session: AsyncSession, fine_id: int) -> None:
    fine = await get_fine(session, fine_id)
    await session.delete(fine)
    await commit_or_raise(session, "Fine")
    logger.info("Fine deleted", extra={"fine_id": fine_id})


async def delete_all_fines(session: AsyncSession) -> int:
    """Remove every fine. Irreversible."""
    result = await session.execute(delete(Fine))
    await commit_or_raise(session, "Fine")
    deleted = result.rowcount or 0
    logger.warning("All fines deleted", extra={"deleted": deleted})
    return deleted
