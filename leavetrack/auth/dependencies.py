"""Auth dependencies — bearer extraction and session validation."""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import Depends, Request
from fastapi.exceptions import HTTPException
from jose import ExpiredSignatureError, JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from leavetrack.auth.models import LoginAccount
from leavetrack.auth.service import decode_token, is_revoked
from leavetrack.database import get_db


def get_bearer_token(request: Request) -> Optional[str]:
    """Return the Bearer token from the Authorization header, if any."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    return auth_header[7:] or None


# ── Core dependency ─────────────────────────────────────────────────

async def get_current_account(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> LoginAccount:
    """Validate the presented token and return its LoginAccount.

    The token must not be revoked, must verify, and must be the account's
    currently active token.
    """
    token = get_bearer_token(request)
    if token is None:
        raise HTTPException(status_code=401, detail="Missing or invalid Authorization header.")

    if await is_revoked(db, token):
        raise HTTPException(status_code=401, detail="Token has been revoked.")

    try:
        payload = decode_token(token)
    except ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired.")
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token.")

    try:
        account_id = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid token.")

    result = await db.execute(
        select(LoginAccount)
        .where(LoginAccount.id == account_id)
        .options(selectinload(LoginAccount.employee)),
    )
    account = result.scalars().first()
    if account is None:
        raise HTTPException(status_code=401, detail="Unauthenticated.")
    if not account.active_token:
        raise HTTPException(status_code=401, detail="No active session.")
    if account.active_token != token:
        raise HTTPException(status_code=401, detail="Token mismatch.")

    request.state.token = token
    return account
