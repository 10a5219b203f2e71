"""Auth router — login, welcome, logout."""


from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from leavetrack.auth import service
from leavetrack.auth.dependencies import get_current_account
from leavetrack.auth.models import LoginAccount
from leavetrack.auth.schemas import (
    LoginRequest,
    MessageResponse,
    TokenResponse,
    WelcomeResponse,
    WelcomeUser,
)
from leavetrack.common.rate_limit import limiter
from leavetrack.config import settings
from leavetrack.database import get_db

router = APIRouter(prefix="", tags=["auth"])


# ── POST /login ─────────────────────────────────────────────────────

@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    return await service.login(db, body.employee_id, body.password)


# ── GET /welcome ────────────────────────────────────────────────────

@router.get("/welcome", response_model=WelcomeResponse)
async def welcome(account: LoginAccount = Depends(get_current_account)):
    employee = account.employee
    return WelcomeResponse(
        message=f"Welcome {account.employee_number}",
        user=WelcomeUser(
            name=employee.emp_name if employee else None,
            employee_id=account.employee_number,
            is_manager=bool(employee and employee.is_manager),
        ),
    )


# ── POST /logout: revoke current token ─────────────────────────────

@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    account: LoginAccount = Depends(get_current_account),
    db: AsyncSession = Depends(get_db),
):
    message = await service.logout(db, request.state.token, account)
    return MessageResponse(message=message)
