from decimal import Decimal
from typing import List

from pydantic import BaseModel

from boetepot.schemas.fine import FineView
from boetepot.schemas.player import PlayerRead


class PublicSummary(BaseModel):
    total: Decimal
    recent_fines: List[FineView]
    players: List[PlayerRead]


class PlayerHistory(BaseModel):
    player: PlayerRead
    fines: List[FineView]
    total: Decimal
