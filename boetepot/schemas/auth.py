from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class LoginRequest(BaseModel):
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: Optional[int] = None


class TokenPayload(BaseModel):
    sub: str
    jti: str
    exp: int
    iat: Optional[int] = None
    role: Optional[str] = None


class SessionStatus(BaseModel):
    authenticated: bool
    expires_at: Optional[datetime] = None
