from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from boetepot.models.revoked_token import RevokedToken
from boetepot.services.auth_service import (
    create_access_token,
    decode_access_token,
    is_token_revoked,
    revoke_token,
    token_expiry,
)

pytestmark = pytest.mark.anyio


async def test_token_expiry_is_aware_utc(db):
    payload = decode_access_token(create_access_token())

    expires_at = token_expiry(payload)

    assert expires_at.tzinfo is not None
    assert expires_at.utcoffset() == timedelta(0)
    assert expires_at > datetime.now(timezone.utc)


async def test_revoke_token_records_jti(session):
    payload = decode_access_token(create_access_token())

    await revoke_token(session, payload["jti"], token_expiry(payload))

    assert await is_token_revoked(session, payload["jti"]) is True
    # revoking twice keeps a single row
    await revoke_token(session, payload["jti"], token_expiry(payload))
    rows = (await session.execute(select(RevokedToken.jti))).scalars().all()
    assert rows == [payload["jti"]]


async def test_revoke_token_purges_expired_entries(session):
    session.add(RevokedToken(jti="old", expires_at=datetime.now(timezone.utc) - timedelta(hours=1)))
    await session.commit()

    payload = decode_access_token(create_access_token())
    await revoke_token(session, payload["jti"], token_expiry(payload))

    assert await is_token_revoked(session, "old") is False
    assert await is_token_revoked(session, payload["jti"]) is True
