"""Employee directory Pydantic v2 schemas."""


import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from leavetrack.attendance.schemas import AttendanceRecordOut


class EmployeeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    emp_name: str
    is_manager: bool
    manager_name: Optional[str] = None
    total_sick_leave_taken: int
    total_casual_leave_taken: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class EmployeeDetailOut(EmployeeOut):
    """Profile with every attendance record, newest first."""

    attendance: list[AttendanceRecordOut] = Field(default_factory=list)


class TodayAttendanceSummary(BaseModel):
    """Today's attendance for the dashboard; ``"NA"`` marks missing values."""

    date: date
    clock_in: str
    clock_out: str
    total_work_hours: Union[Decimal, str]


class ManagedEmployeeOut(EmployeeOut):
    today_attendance: TodayAttendanceSummary
