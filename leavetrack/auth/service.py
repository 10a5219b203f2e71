"""Auth service — password login, JWT management, single-session guard.

An account holds at most one live token (``LoginAccount.active_token``).
Login claims the slot with a compare-and-set UPDATE; logout frees it and
records the token in the revocation store until the token would have
expired anyway.
"""

from __future__ import annotations

import hashlib
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi.exceptions import HTTPException
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from leavetrack.auth.models import LoginAccount, RevokedToken
from leavetrack.auth.schemas import EmployeeBrief, TokenResponse, UserInfo
from leavetrack.common.exceptions import ConflictError
from leavetrack.config import settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# ── Passwords ───────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Check ``password`` against a bcrypt hash. Malformed hashes never match."""
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        return False


def is_password_hash(value: str) -> bool:
    return pwd_context.identify(value) is not None


# ── JWT helpers ─────────────────────────────────────────────────────

def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def create_access_token(account: LoginAccount, is_manager: bool) -> tuple[str, int]:
    """Return (encoded_jwt, expires_in_seconds)."""
    expires_in = settings.JWT_EXPIRY_MINUTES * 60
    payload = {
        "sub": str(account.id),
        "employee_number": account.employee_number,
        "is_manager": is_manager,
        "jti": uuid.uuid4().hex,  # Two logins in the same second still differ
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    }
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return token, expires_in


def decode_token(token: str) -> dict[str, Any]:
    """Verify signature and expiry. Raises ``JWTError`` on failure."""
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])


def _token_expiry(token: str) -> datetime:
    """The token's ``exp`` claim, read without verification.

    Tokens that carry no readable expiry are kept for one full token
    lifetime from now.
    """
    try:
        exp = jwt.get_unverified_claims(token).get("exp")
    except JWTError:
        exp = None
    if isinstance(exp, (int, float)):
        return datetime.fromtimestamp(exp, tz=timezone.utc)
    return datetime.now(timezone.utc) + timedelta(minutes=settings.JWT_EXPIRY_MINUTES)


# ── Session slot ────────────────────────────────────────────────────

async def claim_session(db: AsyncSession, account_id: uuid.UUID, token: str) -> bool:
    """Store ``token`` as the active one only if the slot is still empty."""
    result = await db.execute(
        update(LoginAccount)
        .where(
            LoginAccount.id == account_id,
            LoginAccount.active_token.is_(None),
        )
        .values(active_token=token)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount > 0


# ── Login ───────────────────────────────────────────────────────────

async def login(
    db: AsyncSession,
    employee_number: int,
    password: str,
) -> TokenResponse:
    """Authenticate and claim the account's single session slot."""
    result = await db.execute(
        select(LoginAccount)
        .where(LoginAccount.employee_number == employee_number)
        .options(selectinload(LoginAccount.employee)),
    )
    account = result.scalars().first()
    if account is None or not verify_password(password, account.password_hash):
        logger.info("Failed login attempt for employee number %s", employee_number)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    if account.active_token:
        try:
            decode_token(account.active_token)
        except JWTError:
            # Stale session: the previous token expired without a logout.
            await db.execute(
                update(LoginAccount)
                .where(
                    LoginAccount.id == account.id,
                    LoginAccount.active_token == account.active_token,
                )
                .values(active_token=None)
                .execution_options(synchronize_session=False)
            )
            logger.info("Cleared expired session for account %s", account.id)
        else:
            raise ConflictError(
                "session",
                employee_number,
                detail="Already logged in. Logout first.",
            )

    employee = account.employee
    token, expires_in = create_access_token(
        account, bool(employee and employee.is_manager),
    )

    if not await claim_session(db, account.id, token):
        raise ConflictError(
            "session",
            employee_number,
            detail="Another user logged in just now. Please try again after logout.",
        )
    await db.refresh(account)

    logger.info("Account %s logged in", account.id)

    return TokenResponse(
        token=token,
        expires_in=expires_in,
        user=UserInfo(
            employee_id=account.employee_number,
            employee=(
                EmployeeBrief(
                    id=employee.id,
                    name=employee.emp_name,
                    is_manager=employee.is_manager,
                )
                if employee
                else None
            ),
        ),
    )


# ── Revocation store ────────────────────────────────────────────────

async def is_revoked(db: AsyncSession, token: str) -> bool:
    result = await db.execute(
        select(RevokedToken.token_hash).where(
            RevokedToken.token_hash == _hash_token(token),
            RevokedToken.expires_at > datetime.now(timezone.utc),
        ),
    )
    return result.scalar_one_or_none() is not None


async def purge_expired(db: AsyncSession) -> int:
    """Drop revocation entries whose token has expired. Returns the count."""
    result = await db.execute(
        delete(RevokedToken)
        .where(RevokedToken.expires_at <= datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


async def revoke_token(db: AsyncSession, token: str) -> None:
    """Add ``token`` to the revocation store."""
    token_hash = _hash_token(token)
    if await db.get(RevokedToken, token_hash) is None:
        db.add(RevokedToken(token_hash=token_hash, expires_at=_token_expiry(token)))
        await db.flush()
    purged = await purge_expired(db)
    if purged:
        logger.debug("Purged %d expired revocation entries", purged)


# ── Logout ──────────────────────────────────────────────────────────

async def logout(
    db: AsyncSession,
    token: Optional[str],
    account: Optional[LoginAccount] = None,
) -> str:
    """Revoke ``token`` and free the session slot. Returns a status message."""
    if not token:
        return "No token present"

    await revoke_token(db, token)

    if account is not None:
        stmt = update(LoginAccount).where(LoginAccount.id == account.id)
    else:
        stmt = update(LoginAccount).where(LoginAccount.active_token == token)
    await db.execute(
        stmt.values(active_token=None).execution_options(synchronize_session=False)
    )
    if account is not None:
        await db.refresh(account)

    logger.info("Token revoked%s", f" for account {account.id}" if account else "")
    return "Logout successful. Token revoked."
