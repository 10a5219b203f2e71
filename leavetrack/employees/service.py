"""Employee directory service — profiles and the manager dashboard."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leavetrack.attendance.models import AttendanceRecord
from leavetrack.attendance.schemas import AttendanceRecordOut
from leavetrack.common.constants import NOT_AVAILABLE
from leavetrack.common.exceptions import NotFoundException
from leavetrack.employees.models import Employee
from leavetrack.employees.schemas import (
    EmployeeDetailOut,
    EmployeeOut,
    ManagedEmployeeOut,
    TodayAttendanceSummary,
)


def _format_time(value: Optional[datetime]) -> str:
    if value is None:
        return NOT_AVAILABLE
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%H:%M:%S")


class EmployeeService:

    @staticmethod
    async def get_employee_with_attendance(
        db: AsyncSession,
        employee_id: uuid.UUID,
    ) -> EmployeeDetailOut:
        employee = await db.get(Employee, employee_id)
        if employee is None:
            raise NotFoundException("Employee", str(employee_id))

        result = await db.execute(
            select(AttendanceRecord)
            .where(AttendanceRecord.employee_id == employee_id)
            .order_by(AttendanceRecord.date.desc())
        )
        records = result.scalars().all()

        base = EmployeeOut.model_validate(employee)
        return EmployeeDetailOut(
            **base.model_dump(),
            attendance=[AttendanceRecordOut.model_validate(r) for r in records],
        )

    @staticmethod
    async def get_manager_dashboard(
        db: AsyncSession,
        manager_name: str,
        today: Optional[date] = None,
    ) -> list[ManagedEmployeeOut]:
        """Every report of ``manager_name`` with today's attendance summary.

        An unknown manager, or one without reports, yields an empty list.
        """
        today = today or datetime.now(timezone.utc).date()

        result = await db.execute(
            select(Employee)
            .where(Employee.manager_name == manager_name)
            .order_by(Employee.emp_name)
        )
        employees = result.scalars().all()
        if not employees:
            return []

        attendance_result = await db.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.employee_id.in_([e.id for e in employees]),
                AttendanceRecord.date == today,
            )
        )
        todays = {r.employee_id: r for r in attendance_result.scalars().all()}

        output: list[ManagedEmployeeOut] = []
        for emp in employees:
            record = todays.get(emp.id)
            if record is None:
                summary = TodayAttendanceSummary(
                    date=today,
                    clock_in=NOT_AVAILABLE,
                    clock_out=NOT_AVAILABLE,
                    total_work_hours=NOT_AVAILABLE,
                )
            else:
                summary = TodayAttendanceSummary(
                    date=today,
                    clock_in=_format_time(record.clock_in),
                    clock_out=_format_time(record.clock_out),
                    total_work_hours=(
                        record.total_work_hours
                        if record.total_work_hours is not None
                        else NOT_AVAILABLE
                    ),
                )
            base = EmployeeOut.model_validate(emp)
            output.append(ManagedEmployeeOut(**base.model_dump(), today_attendance=summary))
        return output
