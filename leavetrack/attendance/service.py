"""Attendance service layer — clock in/out and recent history.

Business logic:
  - One attendance record per employee per calendar day
  - Worked hours computed from the clock pair, rounded half-up to 2 decimals
  - Read operations for the most recent days
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from leavetrack.attendance.models import AttendanceRecord
from leavetrack.attendance.schemas import (
    AttendanceRecordOut,
    ClockResponse,
    RecentAttendanceOut,
)
from leavetrack.common.constants import RECENT_ATTENDANCE_LIMIT
from leavetrack.common.exceptions import (
    BadRequestException,
    ConflictError,
    NotFoundException,
)
from leavetrack.employees.models import Employee

logger = logging.getLogger(__name__)

# ── Constants ───────────────────────────────────────────────────────

SECONDS_PER_HOUR = Decimal(3600)
HOURS_QUANTUM = Decimal("0.01")


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ═════════════════════════════════════════════════════════════════════
# AttendanceService
# ═════════════════════════════════════════════════════════════════════


class AttendanceService:
    """Async attendance operations: clock, read."""

    # ── Helpers ─────────────────────────────────────────────────────

    @staticmethod
    async def _ensure_employee(db: AsyncSession, employee_id: uuid.UUID) -> Employee:
        employee = await db.get(Employee, employee_id)
        if employee is None:
            raise NotFoundException("Employee", str(employee_id))
        return employee

    @staticmethod
    def calculate_work_hours(
        clock_in: Optional[datetime],
        clock_out: Optional[datetime],
    ) -> Decimal:
        """Hours between the two instants, rounded half-up to 2 decimals.

        Returns 0 when either value is missing or ``clock_out <= clock_in``.
        Naive datetimes are taken as UTC.
        """
        if clock_in is None or clock_out is None:
            return Decimal("0.00")
        start, end = _as_utc(clock_in), _as_utc(clock_out)
        if end <= start:
            return Decimal("0.00")
        seconds = Decimal(str((end - start).total_seconds()))
        return (seconds / SECONDS_PER_HOUR).quantize(HOURS_QUANTUM, rounding=ROUND_HALF_UP)

    # ── Clock in ────────────────────────────────────────────────────

    @staticmethod
    async def clock_in(
        db: AsyncSession,
        employee_id: uuid.UUID,
        work_date: date,
        clock_in: datetime,
    ) -> ClockResponse:
        """Open the attendance record for ``work_date``."""

        await AttendanceService._ensure_employee(db, employee_id)

        existing = await db.execute(
            select(AttendanceRecord.id).where(
                AttendanceRecord.employee_id == employee_id,
                AttendanceRecord.date == work_date,
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(
                "date",
                work_date.isoformat(),
                detail="Employee is already clocked in for this date.",
            )

        record = AttendanceRecord(
            employee_id=employee_id,
            date=work_date,
            clock_in=_as_utc(clock_in),
        )
        db.add(record)
        try:
            await db.flush()
        except IntegrityError:
            # Lost the race against a concurrent clock-in for the same day.
            await db.rollback()
            raise ConflictError(
                "date",
                work_date.isoformat(),
                detail="Employee is already clocked in for this date.",
            )

        logger.info("Clock-in recorded: employee=%s date=%s", employee_id, work_date)

        return ClockResponse(
            message="Clock-in recorded successfully.",
            attendance=AttendanceRecordOut.model_validate(record),
        )

    # ── Clock out ───────────────────────────────────────────────────

    @staticmethod
    async def clock_out(
        db: AsyncSession,
        employee_id: uuid.UUID,
        work_date: date,
        clock_out: datetime,
    ) -> ClockResponse:
        """Record or correct the clock-out of ``work_date`` and its hours."""

        await AttendanceService._ensure_employee(db, employee_id)

        result = await db.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.employee_id == employee_id,
                AttendanceRecord.date == work_date,
            )
        )
        record = result.scalars().first()
        if record is None:
            raise NotFoundException(
                "AttendanceRecord",
                work_date.isoformat(),
                detail="Attendance record not found for this employee on the given date.",
            )

        hours = AttendanceService.calculate_work_hours(record.clock_in, clock_out)
        if hours <= 0:
            raise BadRequestException(
                "Clock-out time must be after the recorded clock-in time.",
                errors={"clock_out": ["Must be later than clock_in."]},
            )

        record.clock_out = _as_utc(clock_out)
        record.total_work_hours = hours
        await db.flush()
        await db.refresh(record)

        logger.info(
            "Clock-out recorded: employee=%s date=%s hours=%s",
            employee_id, work_date, hours,
        )

        return ClockResponse(
            message="Clock-out time and total work hours updated successfully.",
            attendance=AttendanceRecordOut.model_validate(record),
        )

    # ── Read ────────────────────────────────────────────────────────

    @staticmethod
    async def get_last_four_days(
        db: AsyncSession,
        employee_id: uuid.UUID,
    ) -> RecentAttendanceOut:
        """The employee's newest attendance records, newest first."""

        result = await db.execute(
            select(AttendanceRecord)
            .where(AttendanceRecord.employee_id == employee_id)
            .order_by(AttendanceRecord.date.desc())
            .limit(RECENT_ATTENDANCE_LIMIT)
        )
        records = result.scalars().all()
        if not records:
            raise NotFoundException(
                "AttendanceRecord",
                str(employee_id),
                detail="No recent attendance records found for this employee.",
            )

        return RecentAttendanceOut(
            employee_id=employee_id,
            most_recent_records=[AttendanceRecordOut.model_validate(r) for r in records],
        )
