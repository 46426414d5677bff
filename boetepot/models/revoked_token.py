from datetime import datetime
from sqlalchemy import Column, DateTime
from sqlmodel import SQLModel, Field


class RevokedToken(SQLModel, table=True):
    """Admin access tokens invalidated by logout before their expiry."""

    __tablename__ = "revoked_tokens"

    jti: str = Field(primary_key=True, max_length=64)
    # aware UTC, like the token's own exp claim
    expires_at: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )
