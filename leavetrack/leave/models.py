"""Leave ORM models: LeavePolicy, LeaveRequest."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leavetrack.common.constants import LeaveStatus, LeaveType
from leavetrack.database import Base

if TYPE_CHECKING:
    from leavetrack.employees.models import Employee


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LeavePolicy(Base):
    """Process-wide leave allotments, addressed by a well-known key."""

    __tablename__ = "leave_policies"
    __table_args__ = (
        sa.CheckConstraint("sick_total >= 0", name="ck_policy_sick_non_negative"),
        sa.CheckConstraint("casual_total >= 0", name="ck_policy_casual_non_negative"),
    )

    key: Mapped[str] = mapped_column(sa.String(50), primary_key=True)
    sick_total: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    casual_total: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    # Relationships
    requests: Mapped[list[LeaveRequest]] = relationship(back_populates="policy")

    def total(self, leave_type: LeaveType) -> int:
        if leave_type == LeaveType.sick:
            return self.sick_total
        return self.casual_total


class LeaveRequest(Base):
    """One entry of the leave ledger.

    Only ``status`` and ``days_released`` change after creation. A request
    holds its days on the employee's counter until ``days_released`` is set.
    """

    __tablename__ = "leave_requests"
    __table_args__ = (
        sa.CheckConstraint("applied_days > 0", name="ck_leave_applied_days_positive"),
        sa.CheckConstraint("end_date >= start_date", name="ck_leave_date_order"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        sa.ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    policy_key: Mapped[Optional[str]] = mapped_column(
        sa.String(50), sa.ForeignKey("leave_policies.key")
    )
    leave_type: Mapped[LeaveType] = mapped_column(
        sa.Enum(LeaveType, name="leave_type"), nullable=False
    )
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    applied_days: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    status: Mapped[LeaveStatus] = mapped_column(
        sa.Enum(LeaveStatus, name="leave_status"),
        nullable=False,
        default=LeaveStatus.pending,
        index=True,
    )
    # Set once the request's days have been returned to the counter.
    days_released: Mapped[bool] = mapped_column(
        sa.Boolean, nullable=False, default=False
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="leave_requests")
    policy: Mapped[Optional[LeavePolicy]] = relationship(back_populates="requests")
