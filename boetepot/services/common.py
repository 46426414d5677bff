from decimal import Decimal
from typing import Iterable, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from boetepot.core.exceptions import ErrorKind, PersistenceError, classify_integrity_error


def normalize_entries(values: Iterable[str]) -> List[str]:
    """Trim every entry and drop the blank ones, keeping input order."""
    return [v.strip() for v in values if v and v.strip()]


def split_lines(text: str) -> List[str]:
    """One entry per line, as typed into a textarea."""
    return normalize_entries((text or "").splitlines())


def find_duplicates(values: Iterable) -> List:
    seen = set()
    dupes = []
    for v in values:
        if v in seen and v not in dupes:
            dupes.append(v)
        seen.add(v)
    return dupes


def require_non_empty(values: List[str], field: str) -> None:
    if not values:
        raise PersistenceError(ErrorKind.INVALID, f"At least one {field} is required")


async def commit_or_raise(session: AsyncSession, entity: str) -> None:
    """Commit the pending unit of work; constraint failures roll everything back."""
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise classify_integrity_error(exc, entity) from exc


MONEY_QUANT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Normalise a driver numeric (Decimal, float or int) to two decimal places."""
    if value is None:
        value = 0
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(MONEY_QUANT)


def check_amount(amount: Decimal) -> Decimal:
    if amount is None or amount < 0:
        raise PersistenceError(ErrorKind.INVALID, "Amount must be zero or more", {"amount": str(amount)})
    return amount
