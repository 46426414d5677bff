import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from boetepot.core.database import get_session
from boetepot.schemas.auth import TokenPayload
from boetepot.services.auth_service import decode_access_token, is_token_revoked, token_expiry

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class AdminSession:
    token: str
    jti: str
    expires_at: datetime


async def resolve_admin_session(session: AsyncSession, token: Optional[str]) -> Optional[AdminSession]:
    """Verify signature, expiry and revocation; None for anything not valid right now."""
    if not token:
        return None
    try:
        payload = decode_access_token(token)
    except jwt.ExpiredSignatureError:
        logger.info("Expired admin token presented")
        return None
    except jwt.PyJWTError:
        logger.info("Invalid admin token presented")
        return None
    claims = TokenPayload(**payload)
    if claims.role != "admin":
        return None
    if await is_token_revoked(session, claims.jti):
        logger.info("Revoked admin token presented", extra={"jti": claims.jti})
        return None
    return AdminSession(token=token, jti=claims.jti, expires_at=token_expiry(payload))


async def require_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session),
) -> AdminSession:
    admin = await resolve_admin_session(session, credentials.credentials if credentials else None)
    if admin is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return admin
