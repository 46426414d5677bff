from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class PlayerCreate(BaseModel):
    name: str = Field(min_length=1)


class PlayerBatchCreate(BaseModel):
    names: List[str] = Field(min_length=1)


class PlayerUpdate(BaseModel):
    name: str = Field(min_length=1)


class PlayerRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    created_at: datetime
