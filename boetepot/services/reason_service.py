import logging
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from boetepot.core.exceptions import ErrorKind, PersistenceError
from boetepot.models.fine import Fine
from boetepot.models.reason import Reason
from boetepot.services.common import (
    check_amount,
    commit_or_raise,
    find_duplicates,
    normalize_entries,
    require_non_empty,
)

logger = logging.getLogger(__name__)


async def list_reasons(session: AsyncSession) -> List[Reason]:
    result = await session.execute(select(Reason).order_by(Reason.description))
    return result.scalars().all()


async def get_reason(session: AsyncSession, reason_id: int) -> Reason:
    reason = await session.get(Reason, reason_id)
    if not reason:
        raise PersistenceError(ErrorKind.NOT_FOUND, "Reason not found", {"reason_id": reason_id})
    return reason


async def _existing_descriptions(session: AsyncSession, descriptions: List[str], exclude_id: Optional[int] = None) -> List[str]:
    stmt = select(Reason.description).where(Reason.description.in_(descriptions))
    if exclude_id is not None:
        stmt = stmt.where(Reason.id != exclude_id)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def create_reasons(session: AsyncSession, descriptions: Iterable[str], amount: Decimal = Decimal("0.00")) -> List[Reason]:
    """Insert a batch of reasons sharing one default amount, all or nothing."""
    descriptions = normalize_entries(descriptions)
    require_non_empty(descriptions, "reason description")
    check_amount(amount)

    duplicates = find_duplicates(descriptions) or await _existing_descriptions(session, descriptions)
    if duplicates:
        raise PersistenceError(
            ErrorKind.UNIQUE_VIOLATION, "Reason description already exists", {"descriptions": duplicates}
        )

    reasons = [Reason(description=d, amount=amount) for d in descriptions]
    session.add_all(reasons)
    await commit_or_raise(session, "Reason")
    for reason in reasons:
        await session.refresh(reason)

    logger.info("Reasons created", extra={"count": len(reasons)})
    return reasons


async def create_reason(session: AsyncSession, description: str, amount: Decimal = Decimal("0.00")) -> Reason:
    reasons = await create_reasons(session, [description], amount)
    return reasons[0]


async def update_reason(
    session: AsyncSession,
    reason_id: int,
    description: Optional[str] = None,
    amount: Optional[Decimal] = None,
) -> Reason:
    reason = await get_reason(session, reason_id)

    if description is not None:
        description = description.strip()
        if not description:
            raise PersistenceError(ErrorKind.INVALID, "Reason description is required")
        if await _existing_descriptions(session, [description], exclude_id=reason_id):
            raise PersistenceError(
                ErrorKind.UNIQUE_VIOLATION, "Reason description already exists", {"descriptions": [description]}
            )
        reason.description = description

    if amount is not None:
        reason.amount = check_amount(amount)

    session.add(reason)
    await commit_or_raise(session, "Reason")
    await session.refresh(reason)
    logger.info("Reason updated", extra={"reason_id": reason_id})
    return reason


async def count_fines_for_reason(session: AsyncSession, reason_id: int) -> int:
    result = await session.execute(select(func.count(Fine.id)).where(Fine.reason_id == reason_id))
    return result.scalar_one()


async def delete_reason(session: AsyncSession, reason_id: int) -> None:
    reason = await get_reason(session, reason_id)

    in_use = await count_fines_for_reason(session, reason_id)
    if in_use:
        raise PersistenceError(
            ErrorKind.REFERENTIAL_VIOLATION,
            "Reason is still used by fines and cannot be deleted",
            {"reason_id": reason_id, "fines": in_use},
        )

    await session.delete(reason)
    await commit_or_raise(session, "Reason")
    logger.info("Reason deleted", extra={"reason_id": reason_id})
