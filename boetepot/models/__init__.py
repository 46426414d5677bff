# models package for SQLModel models
from .player import Player  # noqa: F401  (import for metadata registration)
from .reason import Reason  # noqa: F401
from .fine import Fine  # noqa: F401
from .revoked_token import RevokedToken  # noqa: F401
