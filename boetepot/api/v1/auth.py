from datetime import timedelta
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from boetepot.core.database import get_session
from boetepot.core.security import AdminSession, require_admin
from boetepot.schemas.auth import LoginRequest, SessionStatus, Token
from boetepot.services.auth_service import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    authenticate_admin,
    create_access_token,
    revoke_token,
)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=Token)
async def login(payload: LoginRequest):
    if not authenticate_admin(payload.password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credential")
    access_token_expires = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    token = create_access_token(expires_delta=access_token_expires)
    return Token(access_token=token, expires_in=int(access_token_expires.total_seconds()))


@router.get("/session", response_model=SessionStatus)
async def current_session(admin: AdminSession = Depends(require_admin)):
    return SessionStatus(authenticated=True, expires_at=admin.expires_at)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(admin: AdminSession = Depends(require_admin), session: AsyncSession = Depends(get_session)):
    await revoke_token(session, admin.jti, admin.expires_at)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
