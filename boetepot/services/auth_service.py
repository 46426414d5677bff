from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional
import logging
import uuid

import jwt
from passlib.context import CryptContext
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from boetepot.core.config import settings
from boetepot.models.revoked_token import RevokedToken

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
)

ADMIN_SUBJECT = "admin"
JWT_ALGORITHM = settings.ALGORITHM
JWT_SECRET = settings.SECRET_KEY
ACCESS_TOKEN_EXPIRE_MINUTES = int(settings.ACCESS_TOKEN_EXPIRE_MINUTES)


def get_password_hash(password: str) -> str:
    """Hash password using argon2."""
    if not isinstance(password, str):
        password = str(password)
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password with argon2."""
    if not isinstance(plain_password, str):
        plain_password = str(plain_password)
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # malformed hash
        return False


@lru_cache(maxsize=1)
def admin_password_hash() -> str:
    # Plain ADMIN_PASSWORD is hashed once per process; a configured hash wins.
    return settings.ADMIN_PASSWORD_HASH or get_password_hash(settings.ADMIN_PASSWORD)


def authenticate_admin(password: str) -> bool:
    if not password:
        return False
    ok = verify_password(password, admin_password_hash())
    if not ok:
        logger.info("Admin login rejected")
    return ok


def create_access_token(subject: str = ADMIN_SUBJECT, expires_delta: Optional[timedelta] = None) -> str:
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {
        "sub": str(subject),
        "role": ADMIN_SUBJECT,
        "jti": uuid.uuid4().hex,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    token = jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)
    return token


def decode_access_token(token: str) -> dict:
    # Raises jwt.ExpiredSignatureError / jwt.PyJWTError; callers map them to 401
    return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM], options={"require": ["exp", "jti", "sub"]})


async def is_token_revoked(session: AsyncSession, jti: str) -> bool:
    result = await session.execute(select(RevokedToken.jti).where(RevokedToken.jti == jti))
    return result.first() is not None


async def revoke_token(session: AsyncSession, jti: str, expires_at: datetime) -> None:
    """Record ``jti`` as revoked and purge revocations that have expired anyway."""
    await session.execute(delete(RevokedToken).where(RevokedToken.expires_at < datetime.now(timezone.utc)))
    if not await is_token_revoked(session, jti):
        session.add(RevokedToken(jti=jti, expires_at=expires_at))
    await session.commit()
    logger.info("Admin token revoked", extra={"jti": jti})


def token_expiry(payload: dict) -> datetime:
    """Expiry of a decoded token as an aware UTC datetime."""
    return datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
