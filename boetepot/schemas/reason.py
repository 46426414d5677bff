from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ReasonCreate(BaseModel):
    description: str = Field(min_length=1)
    amount: Decimal = Field(default=Decimal("0.00"), ge=0, max_digits=10, decimal_places=2)


class ReasonBatchCreate(BaseModel):
    descriptions: List[str] = Field(min_length=1)
    amount: Decimal = Field(default=Decimal("0.00"), ge=0, max_digits=10, decimal_places=2)


class ReasonUpdate(BaseModel):
    description: Optional[str] = Field(default=None, min_length=1)
    amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)


class ReasonRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    description: str
    amount: Decimal
    created_at: datetime
