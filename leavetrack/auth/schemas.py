"""Auth Pydantic schemas for request / response validation."""


import uuid
from typing import Optional

from pydantic import BaseModel, Field


# ── Requests ────────────────────────────────────────────────────────

class LoginRequest(BaseModel):
    employee_id: int = Field(..., description="Numeric login id of the employee")
    password: str = Field(..., min_length=6)


# ── Embedded / Shared ──────────────────────────────────────────────

class EmployeeBrief(BaseModel):
    id: uuid.UUID
    name: str
    is_manager: bool


class UserInfo(BaseModel):
    employee_id: int
    employee: Optional[EmployeeBrief] = None


# ── Responses ───────────────────────────────────────────────────────

class TokenResponse(BaseModel):
    message: str = "Login successful"
    token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserInfo


class WelcomeUser(BaseModel):
    name: Optional[str] = None
    employee_id: int
    is_manager: bool


class WelcomeResponse(BaseModel):
    message: str
    user: WelcomeUser


class MessageResponse(BaseModel):
    message: str
