"""Attendance router — clock in/out and recent records.

Mounted under ``/users/attendance``.
"""


import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from leavetrack.attendance.schemas import (
    ClockInRequest,
    ClockOutRequest,
    ClockResponse,
    RecentAttendanceOut,
)
from leavetrack.attendance.service import AttendanceService
from leavetrack.database import get_db

router = APIRouter(prefix="", tags=["attendance"])


# ── GET /last-4-days/{id} ───────────────────────────────────────────

@router.get("/last-4-days/{employee_id}", response_model=RecentAttendanceOut)
async def last_four_days(
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """The employee's four most recent attendance records."""
    return await AttendanceService.get_last_four_days(db, employee_id)


# ── POST /clock-in/{id} ─────────────────────────────────────────────

@router.post(
    "/clock-in/{employee_id}",
    response_model=ClockResponse,
    status_code=status.HTTP_201_CREATED,
)
async def clock_in(
    employee_id: uuid.UUID,
    body: ClockInRequest,
    db: AsyncSession = Depends(get_db),
):
    return await AttendanceService.clock_in(db, employee_id, body.date, body.clock_in)


# ── PUT /clock-out/{id} ─────────────────────────────────────────────

@router.put("/clock-out/{employee_id}", response_model=ClockResponse)
async def clock_out(
    employee_id: uuid.UUID,
    body: ClockOutRequest,
    db: AsyncSession = Depends(get_db),
):
    """Record or correct the clock-out time of a day."""
    return await AttendanceService.clock_out(db, employee_id, body.date, body.clock_out)
