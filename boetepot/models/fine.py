import datetime as dt
from decimal import Decimal
from typing import Optional
from sqlalchemy import CheckConstraint
from sqlmodel import SQLModel, Field


class Fine(SQLModel, table=True):
    __tablename__ = "fines"
    __table_args__ = (CheckConstraint("amount >= 0", name="ck_fines_amount_non_negative"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    player_id: int = Field(foreign_key="players.id", ondelete="RESTRICT", index=True)
    reason_id: int = Field(foreign_key="reasons.id", ondelete="RESTRICT", index=True)
    amount: Decimal = Field(max_digits=10, decimal_places=2)
    date: dt.date = Field(default_factory=dt.date.today, index=True)
    admin_notes: Optional[str] = None
