import datetime as dt
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class FineCreate(BaseModel):
    player_id: int
    reason_id: int
    # None means: take the reason's default amount
    amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    date: Optional[dt.date] = None
    admin_notes: Optional[str] = None


class FineBatchCreate(BaseModel):
    player_ids: List[int] = Field(min_length=1)
    reason_id: int
    amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    date: Optional[dt.date] = None
    admin_notes: Optional[str] = None


class FineUpdate(BaseModel):
    player_id: Optional[int] = None
    reason_id: Optional[int] = None
    amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    date: Optional[dt.date] = None
    admin_notes: Optional[str] = None


class FineRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    player_id: int
    reason_id: int
    amount: Decimal
    date: dt.date
    admin_notes: Optional[str] = None


class FineView(BaseModel):
    """A fine joined with its player's name and its reason's description."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    player_id: int
    player_name: str
    reason_id: int
    reason_description: str
    amount: Decimal
    date: dt.date
    admin_notes: Optional[str] = None


class FineTotal(BaseModel):
    total: Decimal


class FinesDeleted(BaseModel):
    deleted: int
