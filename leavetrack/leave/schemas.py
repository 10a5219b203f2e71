"""Leave Pydantic v2 schemas — request / response validation.

Two application payloads are accepted (the ``/leave-management`` shape with
camelCase keys and the ``/leaves`` shape with lowercase keys); both are
normalised into the same service call.
"""


import uuid
from datetime import date, datetime
from typing import Annotated, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator

from leavetrack.common.constants import LeaveStatus, LeaveType


def _parse_leave_type(value):
    if isinstance(value, LeaveType):
        return value
    if not isinstance(value, str):
        raise ValueError("Leave type must be a string.")
    try:
        return LeaveType.parse(value)
    except ValueError:
        raise ValueError(
            'Leave type must be either "Sick Leave" or "Casual Leave".'
        ) from None


LeaveTypeField = Annotated[LeaveType, BeforeValidator(_parse_leave_type)]


class _DateRangeMixin(BaseModel):
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def _check_order(self):
        if self.end_date < self.start_date:
            raise ValueError("End date must not be before start date.")
        return self


# ═════════════════════════════════════════════════════════════════════
# Requests
# ═════════════════════════════════════════════════════════════════════


class LeaveApplyRequest(_DateRangeMixin):
    """``POST /leave-management/apply`` body."""

    model_config = ConfigDict(populate_by_name=True)

    employee_id: uuid.UUID = Field(alias="empId")
    leave_type: LeaveTypeField = Field(alias="leaveType")
    start_date: date = Field(alias="startDate")
    end_date: date = Field(alias="endDate")
    applied_days: int = Field(alias="appliedDays", ge=1)


class LegacyLeaveApplyRequest(_DateRangeMixin):
    """``POST /leaves/apply-leave`` body; days are derived from the dates."""

    model_config = ConfigDict(populate_by_name=True)

    employee_id: uuid.UUID = Field(alias="empid")
    # Informational; the directory name is authoritative.
    employee_name: Optional[str] = Field(default=None, alias="empname", max_length=200)
    start_date: date = Field(alias="startdate")
    end_date: date = Field(alias="enddate")
    leave_type: LeaveTypeField = Field(alias="leavetype")


class LeaveStatusUpdate(BaseModel):
    status: str = Field(..., min_length=1, max_length=20)


# ═════════════════════════════════════════════════════════════════════
# Responses
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    employee_name: Optional[str] = None
    policy_key: Optional[str] = None
    leave_type: LeaveType
    start_date: date
    end_date: date
    applied_days: int
    status: LeaveStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LeaveApplyResponse(BaseModel):
    message: str = "Leave applied successfully"
    leave_id: uuid.UUID
    data: LeaveRequestOut


class LeaveStatusUpdateResponse(BaseModel):
    message: str
    data: LeaveRequestOut


class LeaveStatusItem(BaseModel):
    leave_id: uuid.UUID
    leave_type: LeaveType
    start_date: date
    end_date: date
    applied_days: int
    status: LeaveStatus


class EmployeeLeaveStatusOut(BaseModel):
    employee_id: uuid.UUID
    leave_status: list[LeaveStatusItem]


class ManagerLeaveStatusOut(BaseModel):
    viewed_by: str
    leave_records: list[LeaveRequestOut]


class LeaveBalanceOut(BaseModel):
    """Used / remaining days per type. ``remaining`` may be negative."""

    employee_id: uuid.UUID
    sick_leave_used: int
    sick_leave_remaining: int
    casual_leave_used: int
    casual_leave_remaining: int


class ManagedBalanceOut(BaseModel):
    id: uuid.UUID
    emp_name: str
    total_sick_leave_balance: int
    sick_leave_taken: int
    sick_leave_left: int
    total_casual_leave_balance: int
    casual_leave_taken: int
    casual_leave_left: int
