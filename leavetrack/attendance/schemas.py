"""Attendance Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Request → request bodies (write)
  - *Out / *Response → response bodies (read)
"""


import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


# ═════════════════════════════════════════════════════════════════════
# Clock in / out
# ═════════════════════════════════════════════════════════════════════


class ClockInRequest(BaseModel):
    """Payload for clocking in. ``clock_in`` is an ISO 8601 timestamp."""

    date: date
    clock_in: datetime


class ClockOutRequest(BaseModel):
    """Payload for recording (or correcting) the clock-out of a day."""

    date: date
    clock_out: datetime


class AttendanceRecordOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    date: date
    clock_in: datetime
    clock_out: Optional[datetime] = None
    total_work_hours: Optional[Decimal] = None


class ClockResponse(BaseModel):
    """Response after a clock-in or clock-out action."""

    message: str
    attendance: AttendanceRecordOut


# ═════════════════════════════════════════════════════════════════════
# Read views
# ═════════════════════════════════════════════════════════════════════


class RecentAttendanceOut(BaseModel):
    employee_id: uuid.UUID
    most_recent_records: list[AttendanceRecordOut]
