"""Leave service layer — balance engine and leave lifecycle.

Business logic:
  - Leave application against the singleton policy, with counter increment
  - Status transitions (approve / reject) with counter release on rejection
  - Balance views for one employee and for a manager's reports
  - Ledger totals used to audit the cached counters

The per-employee counters are cached aggregates of the ledger. Every write
to them is a single conditional UPDATE issued in the same transaction as
the ledger write, so a concurrent application cannot slip past the balance
check and a concurrent rejection cannot release the same days twice.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Optional, Union

import sqlalchemy as sa
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from leavetrack.common.constants import LeaveStatus, LeaveType
from leavetrack.common.exceptions import (
    ConflictError,
    InsufficientBalanceException,
    NotFoundException,
    ServerError,
    ValidationException,
)
from leavetrack.config import settings
from leavetrack.employees.models import Employee
from leavetrack.leave import lifecycle
from leavetrack.leave.models import LeavePolicy, LeaveRequest
from leavetrack.leave.schemas import (
    EmployeeLeaveStatusOut,
    LeaveBalanceOut,
    LeaveRequestOut,
    LeaveStatusItem,
    LeaveStatusUpdateResponse,
    ManagedBalanceOut,
    ManagerLeaveStatusOut,
)

logger = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════════
# LeaveService
# ═════════════════════════════════════════════════════════════════════


class LeaveService:
    """Async leave operations: policy, application, status, balances."""

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def _get_employee(db: AsyncSession, employee_id: uuid.UUID) -> Employee:
        employee = await db.get(Employee, employee_id)
        if employee is None:
            raise NotFoundException("Employee", str(employee_id))
        return employee

    @staticmethod
    def inclusive_days(start_date: date, end_date: date) -> int:
        """Number of calendar days covered by the range, both ends included."""
        return abs((end_date - start_date).days) + 1

    @staticmethod
    def _build_request_response(
        req: LeaveRequest,
        *,
        employee_name: Optional[str] = None,
    ) -> LeaveRequestOut:
        out = LeaveRequestOut.model_validate(req)
        out.employee_name = employee_name
        return out

    @staticmethod
    async def _adjust_counter(
        db: AsyncSession,
        employee: Employee,
        leave_type: LeaveType,
        delta: int,
        *,
        ceiling: Optional[int] = None,
    ) -> bool:
        """Atomically add ``delta`` to the employee's counter for ``leave_type``.

        Increments only apply while the result stays within ``ceiling``;
        decrements are floored at zero. Returns False when no row matched.
        """
        column = Employee.counter_column(leave_type)
        stmt = update(Employee).where(Employee.id == employee.id)
        if delta >= 0:
            if ceiling is not None:
                stmt = stmt.where(column + delta <= ceiling)
            new_value = column + delta
        else:
            new_value = sa.case((column + delta > 0, column + delta), else_=0)

        result = await db.execute(
            stmt.values({column: new_value}).execution_options(
                synchronize_session=False,
            )
        )
        await db.refresh(employee)
        return result.rowcount > 0

    # ─────────────────────────────────────────────────────────────────
    # Policy
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_policy(db: AsyncSession) -> LeavePolicy:
        """Return the singleton policy stored under ``LEAVE_POLICY_KEY``."""
        policy = await db.get(LeavePolicy, settings.LEAVE_POLICY_KEY)
        if policy is None:
            logger.error("Leave policy %r is not configured", settings.LEAVE_POLICY_KEY)
            raise ServerError("Leave policy not found.")
        return policy

    # ─────────────────────────────────────────────────────────────────
    # Apply Leave
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def apply_leave(
        db: AsyncSession,
        employee_id: uuid.UUID,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        applied_days: Optional[int] = None,
    ) -> LeaveRequestOut:
        """Apply for leave.

        ``applied_days`` defaults to the inclusive day count of the range.
        Rejected with InsufficientBalanceException when the employee's
        taken days plus the request would exceed the policy total; a request
        that lands exactly on the total is accepted.
        """

        if end_date < start_date:
            raise ValidationException(
                {"end_date": ["End date must not be before start date."]}
            )
        days = (
            applied_days
            if applied_days is not None
            else LeaveService.inclusive_days(start_date, end_date)
        )
        if days < 1:
            raise ValidationException(
                {"applied_days": ["Applied days must be a positive integer."]}
            )

        employee = await LeaveService._get_employee(db, employee_id)
        policy = await LeaveService.get_policy(db)

        allowed = policy.total(leave_type)
        taken = employee.taken(leave_type)
        if taken + days > allowed:
            raise InsufficientBalanceException(leave_type.value, taken, days, allowed)

        reserved = await LeaveService._adjust_counter(
            db, employee, leave_type, days, ceiling=allowed,
        )
        if not reserved:
            # Another request consumed the balance after our read.
            raise InsufficientBalanceException(
                leave_type.value, employee.taken(leave_type), days, allowed,
            )

        leave_request = LeaveRequest(
            employee_id=employee.id,
            policy_key=policy.key,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            applied_days=days,
            status=LeaveStatus.pending,
        )
        db.add(leave_request)
        await db.flush()

        logger.info(
            "Leave %s applied: employee=%s type=%s days=%d taken=%d/%d",
            leave_request.id, employee.id, leave_type.value, days,
            employee.taken(leave_type), allowed,
        )

        return LeaveService._build_request_response(
            leave_request, employee_name=employee.emp_name,
        )

    # ─────────────────────────────────────────────────────────────────
    # Status transitions
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def set_leave_status(
        db: AsyncSession,
        request_id: uuid.UUID,
        new_status: Union[str, LeaveStatus],
    ) -> LeaveStatusUpdateResponse:
        """Move a request to ``approved`` or ``rejected``.

        Entering ``rejected`` from any other state releases the request's
        days (floored at zero), once per request. No other transition touches
        the counter.
        """

        target = lifecycle.parse_target(new_status)

        leave_req = await db.get(LeaveRequest, request_id)
        if leave_req is None:
            raise NotFoundException("LeaveRequest", str(request_id))

        employee = await db.get(Employee, leave_req.employee_id)
        if employee is None:
            raise NotFoundException("Employee", str(leave_req.employee_id))

        old_status = leave_req.status
        delta = 0
        if not leave_req.days_released:
            delta = lifecycle.counter_delta(old_status, target, leave_req.applied_days)

        values = {"status": target}
        if delta:
            values["days_released"] = True

        # Compare-and-set on the previous status so two concurrent
        # rejections cannot both release the days.
        result = await db.execute(
            update(LeaveRequest)
            .where(
                LeaveRequest.id == leave_req.id,
                LeaveRequest.status == old_status,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ConflictError(
                "status",
                old_status.value,
                detail="Leave request was modified concurrently. Please retry.",
            )
        await db.refresh(leave_req)

        if delta:
            await LeaveService._adjust_counter(db, employee, leave_req.leave_type, delta)
            logger.info(
                "Released %d %s day(s) for employee %s (leave %s rejected)",
                -delta, leave_req.leave_type.value, employee.id, leave_req.id,
            )

        logger.info(
            "Leave %s status %s -> %s", leave_req.id, old_status.value, target.value,
        )

        return LeaveStatusUpdateResponse(
            message=f'Leave status updated to "{target.value}"',
            data=LeaveService._build_request_response(
                leave_req, employee_name=employee.emp_name,
            ),
        )

    # ─────────────────────────────────────────────────────────────────
    # Balances
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_balance(
        db: AsyncSession,
        employee_id: uuid.UUID,
    ) -> LeaveBalanceOut:
        """Used and remaining days per type. Remaining is not clamped."""

        employee = await LeaveService._get_employee(db, employee_id)
        policy = await LeaveService.get_policy(db)

        sick_used = employee.taken(LeaveType.sick)
        casual_used = employee.taken(LeaveType.casual)
        return LeaveBalanceOut(
            employee_id=employee.id,
            sick_leave_used=sick_used,
            sick_leave_remaining=policy.sick_total - sick_used,
            casual_leave_used=casual_used,
            casual_leave_remaining=policy.casual_total - casual_used,
        )

    @staticmethod
    async def get_managed_balances(
        db: AsyncSession,
        manager_name: str,
    ) -> list[ManagedBalanceOut]:
        """Balances of every employee reporting to ``manager_name``."""

        policy = await LeaveService.get_policy(db)

        result = await db.execute(
            select(Employee)
            .where(Employee.manager_name == manager_name)
            .order_by(Employee.emp_name)
        )
        output: list[ManagedBalanceOut] = []
        for emp in result.scalars().all():
            sick_taken = emp.taken(LeaveType.sick)
            casual_taken = emp.taken(LeaveType.casual)
            output.append(
                ManagedBalanceOut(
                    id=emp.id,
                    emp_name=emp.emp_name,
                    total_sick_leave_balance=policy.sick_total,
                    sick_leave_taken=sick_taken,
                    sick_leave_left=policy.sick_total - sick_taken,
                    total_casual_leave_balance=policy.casual_total,
                    casual_leave_taken=casual_taken,
                    casual_leave_left=policy.casual_total - casual_taken,
                )
            )
        return output

    # ─────────────────────────────────────────────────────────────────
    # Ledger views
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_leave_status(
        db: AsyncSession,
        employee_id: uuid.UUID,
    ) -> EmployeeLeaveStatusOut:
        """Status summary of every request filed by the employee."""

        result = await db.execute(
            select(LeaveRequest)
            .where(LeaveRequest.employee_id == employee_id)
            .order_by(LeaveRequest.created_at)
        )
        records = result.scalars().all()
        if not records:
            raise NotFoundException(
                "LeaveRequest",
                str(employee_id),
                detail="No leave records found for this employee.",
            )

        return EmployeeLeaveStatusOut(
            employee_id=employee_id,
            leave_status=[
                LeaveStatusItem(
                    leave_id=r.id,
                    leave_type=r.leave_type,
                    start_date=r.start_date,
                    end_date=r.end_date,
                    applied_days=r.applied_days,
                    status=r.status,
                )
                for r in records
            ],
        )

    @staticmethod
    async def get_pending_for_manager(
        db: AsyncSession,
        manager_name: Optional[str] = None,
    ) -> ManagerLeaveStatusOut:
        """Pending requests of the manager's reports, or all pending ones."""

        query = (
            select(LeaveRequest)
            .join(Employee, LeaveRequest.employee_id == Employee.id)
            .where(LeaveRequest.status == LeaveStatus.pending)
            .options(selectinload(LeaveRequest.employee))
            .order_by(LeaveRequest.created_at)
        )
        if manager_name:
            query = query.where(Employee.manager_name == manager_name)

        result = await db.execute(query)
        records = result.scalars().all()
        if not records:
            raise NotFoundException(
                "LeaveRequest",
                manager_name or "*",
                detail="No pending leave records found.",
            )

        return ManagerLeaveStatusOut(
            viewed_by=manager_name or "Manager",
            leave_records=[
                LeaveService._build_request_response(
                    r, employee_name=r.employee.emp_name,
                )
                for r in records
            ],
        )

    @staticmethod
    async def ledger_totals(
        db: AsyncSession,
        employee_id: uuid.UUID,
    ) -> dict[LeaveType, int]:
        """Sum of applied days over the employee's requests still holding
        their days.

        A request approved after a rejection stays excluded, matching the
        counter, which does not re-consume those days.
        """

        result = await db.execute(
            select(
                LeaveRequest.leave_type,
                func.coalesce(func.sum(LeaveRequest.applied_days), 0),
            )
            .where(
                LeaveRequest.employee_id == employee_id,
                LeaveRequest.days_released.is_(False),
            )
            .group_by(LeaveRequest.leave_type)
        )
        totals = {leave_type: 0 for leave_type in LeaveType}
        for leave_type, days in result.all():
            totals[leave_type] = int(days)
        return totals
