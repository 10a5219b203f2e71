"""Employee directory ORM model.

The leave counters are cached aggregates of the leave ledger: for each type
they equal the sum of ``applied_days`` over the employee's non-rejected
requests. Only ``LeaveService`` writes them.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leavetrack.common.constants import LeaveType
from leavetrack.database import Base

if TYPE_CHECKING:
    from leavetrack.attendance.models import AttendanceRecord
    from leavetrack.auth.models import LoginAccount
    from leavetrack.leave.models import LeaveRequest


class Employee(Base):
    """Employee record with per-type leave counters."""

    __tablename__ = "employees"
    __table_args__ = (
        sa.CheckConstraint("length(emp_name) >= 3", name="ck_employee_name_length"),
        sa.CheckConstraint(
            "is_manager OR manager_name IS NOT NULL",
            name="ck_employee_manager_name",
        ),
        sa.CheckConstraint(
            "total_sick_leave_taken >= 0", name="ck_employee_sick_non_negative",
        ),
        sa.CheckConstraint(
            "total_casual_leave_taken >= 0", name="ck_employee_casual_non_negative",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    emp_name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    is_manager: Mapped[bool] = mapped_column(
        sa.Boolean, nullable=False, default=False,
    )
    manager_name: Mapped[Optional[str]] = mapped_column(sa.String(200), index=True)
    total_sick_leave_taken: Mapped[int] = mapped_column(
        sa.Integer, nullable=False, default=0,
    )
    total_casual_leave_taken: Mapped[int] = mapped_column(
        sa.Integer, nullable=False, default=0,
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # ── Relationships ───────────────────────────────────────────────
    attendance_records: Mapped[list[AttendanceRecord]] = relationship(
        back_populates="employee",
        order_by="AttendanceRecord.date",
    )
    leave_requests: Mapped[list[LeaveRequest]] = relationship(
        back_populates="employee",
        order_by="LeaveRequest.created_at",
    )
    login_account: Mapped[Optional[LoginAccount]] = relationship(
        back_populates="employee",
    )

    @staticmethod
    def counter_column(leave_type: LeaveType):
        """Return the mapped counter column for ``leave_type``."""
        if leave_type == LeaveType.sick:
            return Employee.total_sick_leave_taken
        return Employee.total_casual_leave_taken

    def taken(self, leave_type: LeaveType) -> int:
        if leave_type == LeaveType.sick:
            return self.total_sick_leave_taken or 0
        return self.total_casual_leave_taken or 0

    def __repr__(self) -> str:
        return f"<Employee {self.emp_name!r}>"
