from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy import CheckConstraint, Column, DateTime, func
from sqlmodel import SQLModel, Field


class Reason(SQLModel, table=True):
    __tablename__ = "reasons"
    __table_args__ = (CheckConstraint("amount >= 0", name="ck_reasons_amount_non_negative"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    description: str = Field(index=True, sa_column_kwargs={"unique": True})
    # default amount proposed when a fine is issued for this reason
    amount: Decimal = Field(default=Decimal("0.00"), max_digits=10, decimal_places=2)
    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(
            DateTime(timezone=False),
            server_default=func.now(),
            nullable=False,
        )
    )
