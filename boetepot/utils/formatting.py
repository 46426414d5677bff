"""Dutch (nl-NL) display helpers for amounts and dates."""

import datetime as dt
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

MONTHS_NL = (
    "januari",
    "februari",
    "maart",
    "april",
    "mei",
    "juni",
    "juli",
    "augustus",
    "september",
    "oktober",
    "november",
    "december",
)


def format_currency(amount: Optional[Union[Decimal, float, int]]) -> str:
    """Format as euros the way nl-NL does: ``€ 1.234,50``."""
    if amount is None:
        amount = 0
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    whole, cents = f"{abs(value):.2f}".split(".")
    groups = []
    while len(whole) > 3:
        groups.insert(0, whole[-3:])
        whole = whole[:-3]
    groups.insert(0, whole)
    return f"€ {sign}{'.'.join(groups)},{cents}"


def format_date(value: Optional[Union[dt.date, str]], with_year: bool = False) -> str:
    """``7 maart`` (or ``7 maart 2024``); ``-`` when there is no date."""
    if not value:
        return "-"
    if isinstance(value, str):
        try:
            value = dt.date.fromisoformat(value[:10])
        except ValueError:
            return "Ongeldige datum"
    text = f"{value.day} {MONTHS_NL[value.month - 1]}"
    if with_year:
        text += f" {value.year}"
    return text


# NUMERIC(10,2): eight integer digits
MAX_AMOUNT = Decimal("99999999.99")


def parse_amount(raw: Optional[str]) -> Optional[Decimal]:
    """Parse a typed amount, accepting a decimal comma. Blank gives None.

    Raises ValueError for anything that is not a non-negative number that
    fits the stored column.
    """
    raw = (raw or "").strip().replace("€", "").strip()
    if not raw:
        return None
    if "," in raw:
        raw = raw.replace(".", "").replace(",", ".")
    try:
        value = Decimal(raw)
        if not value.is_finite() or value < 0:
            raise ValueError(f"not a non-negative amount: {raw!r}")
        if value > MAX_AMOUNT:
            raise ValueError(f"amount too large: {raw!r}")
        value = value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise ValueError(f"not a number: {raw!r}") from exc
    if value > MAX_AMOUNT:
        raise ValueError(f"amount too large: {raw!r}")
    return value
