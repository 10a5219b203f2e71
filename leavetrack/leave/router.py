"""Leave routers — application, status transitions, balances.

Two route groups share the same service calls:
  - ``legacy_router`` is mounted under ``/leaves``
  - ``router`` is mounted under ``/leave-management``
"""


import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from leavetrack.database import get_db
from leavetrack.leave.schemas import (
    EmployeeLeaveStatusOut,
    LeaveApplyRequest,
    LeaveApplyResponse,
    LeaveBalanceOut,
    LeaveStatusUpdate,
    LeaveStatusUpdateResponse,
    LegacyLeaveApplyRequest,
    ManagedBalanceOut,
    ManagerLeaveStatusOut,
)
from leavetrack.leave.service import LeaveService

logger = logging.getLogger(__name__)

legacy_router = APIRouter(prefix="", tags=["leaves"])
router = APIRouter(prefix="", tags=["leave-management"])


# ═════════════════════════════════════════════════════════════════════
# /leaves
# ═════════════════════════════════════════════════════════════════════


# ── POST /apply-leave ───────────────────────────────────────────────

@legacy_router.post(
    "/apply-leave",
    response_model=LeaveApplyResponse,
    status_code=status.HTTP_201_CREATED,
)
async def apply_leave_legacy(
    body: LegacyLeaveApplyRequest,
    db: AsyncSession = Depends(get_db),
):
    """Apply for leave; the day count is derived from the date range.

    ``empname`` is not stored: the response carries the directory name.
    """
    leave = await LeaveService.apply_leave(
        db,
        body.employee_id,
        body.leave_type,
        body.start_date,
        body.end_date,
    )
    if body.employee_name and body.employee_name.strip() != leave.employee_name:
        logger.warning(
            "Leave %s: submitted name %r does not match directory name %r",
            leave.id, body.employee_name, leave.employee_name,
        )
    return LeaveApplyResponse(leave_id=leave.id, data=leave)


# ── GET /leave-status/{empid} ───────────────────────────────────────

@legacy_router.get("/leave-status/{empid}", response_model=EmployeeLeaveStatusOut)
async def leave_status(
    empid: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.get_leave_status(db, empid)


# ── GET /manager-leave-status[/{manager_name}] ──────────────────────

@legacy_router.get("/manager-leave-status", response_model=ManagerLeaveStatusOut)
@legacy_router.get(
    "/manager-leave-status/{manager_name}", response_model=ManagerLeaveStatusOut,
)
async def manager_leave_status(
    manager_name: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    """Pending requests of the manager's reports, or all pending ones."""
    return await LeaveService.get_pending_for_manager(db, manager_name)


# ── PATCH /leave-management/status/{leave_id} ───────────────────────

@legacy_router.patch(
    "/leave-management/status/{leave_id}",
    response_model=LeaveStatusUpdateResponse,
)
async def update_leave_status_legacy(
    leave_id: uuid.UUID,
    body: LeaveStatusUpdate,
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.set_leave_status(db, leave_id, body.status)


# ═════════════════════════════════════════════════════════════════════
# /leave-management
# ═════════════════════════════════════════════════════════════════════


# ── POST /apply ─────────────────────────────────────────────────────

@router.post(
    "/apply",
    response_model=LeaveApplyResponse,
    status_code=status.HTTP_201_CREATED,
)
async def apply_leave(
    body: LeaveApplyRequest,
    db: AsyncSession = Depends(get_db),
):
    """Apply for leave. Rejected when the policy total would be exceeded."""
    leave = await LeaveService.apply_leave(
        db,
        body.employee_id,
        body.leave_type,
        body.start_date,
        body.end_date,
        applied_days=body.applied_days,
    )
    return LeaveApplyResponse(leave_id=leave.id, data=leave)


# ── PATCH /status/{leave_id} ────────────────────────────────────────

@router.patch("/status/{leave_id}", response_model=LeaveStatusUpdateResponse)
async def update_leave_status(
    leave_id: uuid.UUID,
    body: LeaveStatusUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Approve or reject a request. Rejection releases its days."""
    return await LeaveService.set_leave_status(db, leave_id, body.status)


# ── GET /balance/{emp_id} ───────────────────────────────────────────

@router.get("/balance/{emp_id}", response_model=LeaveBalanceOut)
async def get_balance(
    emp_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.get_balance(db, emp_id)


# ── GET /mgr_leave_balance/{manager_name} ───────────────────────────

@router.get(
    "/mgr_leave_balance/{manager_name}",
    response_model=list[ManagedBalanceOut],
)
async def get_managed_balances(
    manager_name: str,
    db: AsyncSession = Depends(get_db),
):
    """Leave balances of everyone reporting to ``manager_name``."""
    return await LeaveService.get_managed_balances(db, manager_name)
