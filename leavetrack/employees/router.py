"""Employee directory router — profiles and the manager dashboard.

Mounted under ``/users``.
"""


import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from leavetrack.database import get_db
from leavetrack.employees.schemas import EmployeeDetailOut, ManagedEmployeeOut
from leavetrack.employees.service import EmployeeService

router = APIRouter(prefix="", tags=["users"])


# ── GET /mgr_dashboard/{manager_name} ───────────────────────────────

@router.get("/mgr_dashboard/{manager_name}", response_model=list[ManagedEmployeeOut])
async def manager_dashboard(
    manager_name: str,
    db: AsyncSession = Depends(get_db),
):
    """Reports of the manager with today's attendance."""
    return await EmployeeService.get_manager_dashboard(db, manager_name)


# ── GET /{id} ───────────────────────────────────────────────────────

@router.get("/{employee_id}", response_model=EmployeeDetailOut)
async def get_employee(
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    return await EmployeeService.get_employee_with_attendance(db, employee_id)
