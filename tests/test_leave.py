"""Leave module test suite — application, status transitions, balances,
ledger consistency, and API endpoints.

Tests run against SQLite via the shared conftest.py fixtures.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leavetrack.common.constants import LeaveStatus, LeaveType
from leavetrack.common.exceptions import (
    InsufficientBalanceException,
    NotFoundException,
    ServerError,
    ValidationException,
)
from leavetrack.employees.models import Employee
from leavetrack.leave import lifecycle
from leavetrack.leave.models import LeaveRequest
from leavetrack.leave.service import LeaveService
from tests.conftest import seed_employee, seed_policy


async def _apply(db: AsyncSession, emp: Employee, days: int, leave_type=LeaveType.casual):
    return await LeaveService.apply_leave(
        db, emp.id, leave_type, date(2026, 3, 2), date(2026, 3, 2), applied_days=days,
    )


async def _assert_counters_match_ledger(db: AsyncSession, emp: Employee) -> None:
    await db.refresh(emp)
    totals = await LeaveService.ledger_totals(db, emp.id)
    for leave_type in LeaveType:
        assert emp.taken(leave_type) == totals[leave_type]


# ═════════════════════════════════════════════════════════════════════
# 1. Lifecycle helpers
# ═════════════════════════════════════════════════════════════════════


class TestLifecycle:

    def test_parse_target_accepts_approved_and_rejected(self):
        assert lifecycle.parse_target("approved") == LeaveStatus.approved
        assert lifecycle.parse_target(" Rejected ") == LeaveStatus.rejected

    @pytest.mark.parametrize("value", ["pending", "cancelled", ""])
    def test_parse_target_rejects_other_values(self, value):
        with pytest.raises(ValidationException) as exc_info:
            lifecycle.parse_target(value)
        assert "status" in exc_info.value.errors

    def test_counter_delta_only_when_entering_rejected(self):
        P, A, R = LeaveStatus.pending, LeaveStatus.approved, LeaveStatus.rejected
        assert lifecycle.counter_delta(P, R, 3) == -3
        assert lifecycle.counter_delta(A, R, 3) == -3
        assert lifecycle.counter_delta(R, R, 3) == 0
        assert lifecycle.counter_delta(R, A, 3) == 0
        assert lifecycle.counter_delta(P, A, 3) == 0

    def test_leave_type_parse_accepts_labels(self):
        assert LeaveType.parse("Sick Leave") == LeaveType.sick
        assert LeaveType.parse("CASUAL") == LeaveType.casual
        with pytest.raises(ValueError):
            LeaveType.parse("Annual Leave")


# ═════════════════════════════════════════════════════════════════════
# 2. Leave Application — service layer
# ═════════════════════════════════════════════════════════════════════


class TestApplyLeave:
    """Tests for LeaveService.apply_leave()."""

    async def test_apply_leave_happy_path(self, db, policy, employee):
        """Pending request created and the counter is incremented immediately."""
        result = await _apply(db, employee, 3)

        assert result.status == LeaveStatus.pending
        assert result.applied_days == 3
        assert result.employee_id == employee.id
        assert result.employee_name == employee.emp_name
        assert result.policy_key == policy.key

        await db.refresh(employee)
        assert employee.total_casual_leave_taken == 3
        assert employee.total_sick_leave_taken == 0

    async def test_applied_days_derived_from_range(self, db, policy, employee):
        """Without applied_days the inclusive day count is used."""
        result = await LeaveService.apply_leave(
            db, employee.id, LeaveType.sick, date(2026, 3, 2), date(2026, 3, 6),
        )
        assert result.applied_days == 5
        await db.refresh(employee)
        assert employee.total_sick_leave_taken == 5

    async def test_request_landing_exactly_on_total_is_accepted(self, db, policy):
        emp = await seed_employee(db, casual_taken=10)
        await _apply(db, emp, 2)
        await db.refresh(emp)
        assert emp.total_casual_leave_taken == 12

    async def test_request_exceeding_total_is_rejected(self, db, policy):
        emp = await seed_employee(db, casual_taken=10)

        with pytest.raises(InsufficientBalanceException) as exc_info:
            await _apply(db, emp, 5)
        assert exc_info.value.status_code == 400
        assert "Taken: 10" in exc_info.value.detail

        await db.refresh(emp)
        assert emp.total_casual_leave_taken == 10
        count = await db.execute(select(LeaveRequest).where(LeaveRequest.employee_id == emp.id))
        assert count.scalars().all() == []

    async def test_conditional_update_blocks_stale_read(self, db, policy):
        """A counter bumped behind the session's back still bounds the apply."""
        emp = await seed_employee(db, casual_taken=0)
        await db.execute(
            Employee.__table__.update()
            .where(Employee.__table__.c.id == emp.id)
            .values(total_casual_leave_taken=11)
        )
        # ``emp`` still believes 0 days are taken; the UPDATE must re-check.
        with pytest.raises(InsufficientBalanceException):
            await _apply(db, emp, 2)
        await db.refresh(emp)
        assert emp.total_casual_leave_taken == 11

    async def test_unknown_employee(self, db, policy):
        with pytest.raises(NotFoundException):
            await LeaveService.apply_leave(
                db, uuid.uuid4(), LeaveType.sick, date(2026, 3, 2), date(2026, 3, 2),
            )

    async def test_missing_policy_is_server_error(self, db, employee):
        with pytest.raises(ServerError):
            await _apply(db, employee, 1)

    async def test_end_before_start(self, db, policy, employee):
        with pytest.raises(ValidationException):
            await LeaveService.apply_leave(
                db, employee.id, LeaveType.sick, date(2026, 3, 5), date(2026, 3, 2),
            )


# ═════════════════════════════════════════════════════════════════════
# 3. Status transitions
# ═════════════════════════════════════════════════════════════════════


class TestSetLeaveStatus:

    async def test_approve_keeps_counter(self, db, policy, employee):
        leave = await _apply(db, employee, 4)
        result = await LeaveService.set_leave_status(db, leave.id, "approved")

        assert result.data.status == LeaveStatus.approved
        assert result.message == 'Leave status updated to "approved"'
        await db.refresh(employee)
        assert employee.total_casual_leave_taken == 4

    async def test_reject_releases_days(self, db, policy, employee):
        leave = await _apply(db, employee, 4)
        await LeaveService.set_leave_status(db, leave.id, "rejected")
        await db.refresh(employee)
        assert employee.total_casual_leave_taken == 0

    async def test_double_reject_releases_once(self, db, policy):
        emp = await seed_employee(db, casual_taken=2)
        leave = await _apply(db, emp, 3)
        await LeaveService.set_leave_status(db, leave.id, "rejected")
        await LeaveService.set_leave_status(db, leave.id, "rejected")
        await db.refresh(emp)
        assert emp.total_casual_leave_taken == 2

    async def test_reject_then_approve_does_not_reconsume(self, db, policy, employee):
        leave = await _apply(db, employee, 3)
        await LeaveService.set_leave_status(db, leave.id, "rejected")
        result = await LeaveService.set_leave_status(db, leave.id, "approved")
        assert result.data.status == LeaveStatus.approved
        await db.refresh(employee)
        assert employee.total_casual_leave_taken == 0

    async def test_rejecting_again_after_reapproval_releases_nothing(self, db, policy):
        emp = await seed_employee(db, casual_taken=5)
        leave = await _apply(db, emp, 3)
        await LeaveService.set_leave_status(db, leave.id, "rejected")
        await LeaveService.set_leave_status(db, leave.id, "approved")
        await LeaveService.set_leave_status(db, leave.id, "rejected")
        await db.refresh(emp)
        assert emp.total_casual_leave_taken == 5

        row = await db.get(LeaveRequest, leave.id)
        assert row.days_released is True

    async def test_release_floored_at_zero(self, db, policy, employee):
        leave = await _apply(db, employee, 3)
        # Counter drifted below the request's days (e.g. manual correction).
        employee.total_casual_leave_taken = 1
        await db.flush()

        await LeaveService.set_leave_status(db, leave.id, "rejected")
        await db.refresh(employee)
        assert employee.total_casual_leave_taken == 0

    async def test_invalid_status(self, db, policy, employee):
        leave = await _apply(db, employee, 1)
        with pytest.raises(ValidationException):
            await LeaveService.set_leave_status(db, leave.id, "pending")

    async def test_unknown_request(self, db, policy):
        with pytest.raises(NotFoundException):
            await LeaveService.set_leave_status(db, uuid.uuid4(), "approved")


# ═════════════════════════════════════════════════════════════════════
# 4. Accounting invariant
# ═════════════════════════════════════════════════════════════════════


class TestLedgerConsistency:

    async def test_counters_track_ledger_through_mixed_operations(self, db, policy, employee):
        first = await _apply(db, employee, 2, LeaveType.sick)
        second = await _apply(db, employee, 3, LeaveType.casual)
        third = await _apply(db, employee, 1, LeaveType.casual)
        await _assert_counters_match_ledger(db, employee)

        await LeaveService.set_leave_status(db, first.id, "approved")
        await LeaveService.set_leave_status(db, second.id, "rejected")
        await _assert_counters_match_ledger(db, employee)

        await LeaveService.set_leave_status(db, third.id, "rejected")
        await LeaveService.set_leave_status(db, third.id, "rejected")
        await _assert_counters_match_ledger(db, employee)

        totals = await LeaveService.ledger_totals(db, employee.id)
        assert totals == {LeaveType.sick: 2, LeaveType.casual: 0}

    async def test_reapproved_request_stays_out_of_ledger(self, db, policy, employee):
        kept = await _apply(db, employee, 2)
        flipped = await _apply(db, employee, 3)
        await LeaveService.set_leave_status(db, flipped.id, "rejected")
        await LeaveService.set_leave_status(db, flipped.id, "approved")

        await _assert_counters_match_ledger(db, employee)
        totals = await LeaveService.ledger_totals(db, employee.id)
        assert totals[LeaveType.casual] == 2
        assert kept.status == LeaveStatus.pending

    async def test_failed_apply_leaves_no_trace(self, db, policy):
        emp = await seed_employee(db, sick_taken=0)
        await _apply(db, emp, 12, LeaveType.sick)
        with pytest.raises(InsufficientBalanceException):
            await _apply(db, emp, 1, LeaveType.sick)
        await _assert_counters_match_ledger(db, emp)


# ═════════════════════════════════════════════════════════════════════
# 5. Balances and read views
# ═════════════════════════════════════════════════════════════════════


class TestBalances:

    async def test_balance(self, db, policy):
        emp = await seed_employee(db, sick_taken=2, casual_taken=10)
        balance = await LeaveService.get_balance(db, emp.id)
        assert balance.sick_leave_used == 2
        assert balance.sick_leave_remaining == 10
        assert balance.casual_leave_used == 10
        assert balance.casual_leave_remaining == 2

    async def test_balance_remaining_not_clamped(self, db):
        await seed_policy(db, sick_total=5, casual_total=5)
        emp = await seed_employee(db, sick_taken=7)
        balance = await LeaveService.get_balance(db, emp.id)
        assert balance.sick_leave_remaining == -2

    async def test_balance_unknown_employee(self, db, policy):
        with pytest.raises(NotFoundException):
            await LeaveService.get_balance(db, uuid.uuid4())

    async def test_managed_balances(self, db, policy, manager):
        await seed_employee(db, name="Meera Iyer", manager_name=manager.emp_name, sick_taken=1)
        await seed_employee(db, name="Ravi Kumar", manager_name=manager.emp_name, casual_taken=4)
        await seed_employee(db, name="Other Person", manager_name="Someone Else")

        rows = await LeaveService.get_managed_balances(db, manager.emp_name)
        assert [r.emp_name for r in rows] == ["Meera Iyer", "Ravi Kumar"]
        assert rows[0].sick_leave_left == 11
        assert rows[1].casual_leave_taken == 4
        assert rows[1].total_casual_leave_balance == 12

    async def test_managed_balances_empty(self, db, policy):
        assert await LeaveService.get_managed_balances(db, "Nobody") == []

    async def test_leave_status_summary(self, db, policy, employee):
        await _apply(db, employee, 1)
        await _apply(db, employee, 2, LeaveType.sick)
        summary = await LeaveService.get_leave_status(db, employee.id)
        assert len(summary.leave_status) == 2
        assert {item.leave_type for item in summary.leave_status} == {
            LeaveType.casual, LeaveType.sick,
        }

    async def test_leave_status_none(self, db, policy, employee):
        with pytest.raises(NotFoundException):
            await LeaveService.get_leave_status(db, employee.id)

    async def test_pending_for_manager(self, db, policy, manager, employee):
        outsider = await seed_employee(db, name="Outsider", manager_name="Someone Else")
        mine = await _apply(db, employee, 1)
        decided = await _apply(db, employee, 1)
        await _apply(db, outsider, 1)
        await LeaveService.set_leave_status(db, decided.id, "approved")

        result = await LeaveService.get_pending_for_manager(db, manager.emp_name)
        assert result.viewed_by == manager.emp_name
        assert [r.id for r in result.leave_records] == [mine.id]
        assert result.leave_records[0].employee_name == employee.emp_name

        everyone = await LeaveService.get_pending_for_manager(db)
        assert len(everyone.leave_records) == 2


# ═════════════════════════════════════════════════════════════════════
# 6. API endpoints
# ═════════════════════════════════════════════════════════════════════


class TestLeaveAPI:

    async def test_apply_via_leave_management(self, client, db, policy, employee):
        await db.commit()
        resp = await client.post(
            "/api/v1/leave-management/apply",
            json={
                "empId": str(employee.id),
                "leaveType": "Sick Leave",
                "startDate": "2026-03-02",
                "endDate": "2026-03-03",
                "appliedDays": 2,
            },
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["message"] == "Leave applied successfully"
        assert body["data"]["leave_type"] == "sick"
        assert body["data"]["status"] == "pending"

        resp = await client.get(f"/api/v1/leave-management/balance/{employee.id}")
        assert resp.status_code == 200
        assert resp.json()["sick_leave_used"] == 2
        assert resp.json()["sick_leave_remaining"] == 10

    async def test_apply_via_leaves_derives_days(self, client, db, policy, employee):
        await db.commit()
        resp = await client.post(
            "/api/v1/leaves/apply-leave",
            json={
                "empid": str(employee.id),
                "empname": employee.emp_name,
                "startdate": "2026-03-02",
                "enddate": "2026-03-04",
                "leavetype": "casual",
            },
        )
        assert resp.status_code == 201
        assert resp.json()["data"]["applied_days"] == 3

        resp = await client.get(f"/api/v1/leaves/leave-status/{employee.id}")
        assert resp.status_code == 200
        assert resp.json()["leave_status"][0]["applied_days"] == 3

    async def test_apply_via_leaves_directory_name_wins(self, client, db, policy, employee, caplog):
        await db.commit()
        payload = {
            "empid": str(employee.id),
            "empname": "Someone Else",
            "startdate": "2026-03-02",
            "enddate": "2026-03-02",
            "leavetype": "Sick Leave",
        }
        with caplog.at_level(logging.WARNING, logger="leavetrack.leave.router"):
            resp = await client.post("/api/v1/leaves/apply-leave", json=payload)

        assert resp.status_code == 201
        assert resp.json()["data"]["employee_name"] == employee.emp_name
        assert any("does not match directory name" in r.getMessage() for r in caplog.records)

    async def test_apply_via_leaves_without_name(self, client, db, policy, employee):
        await db.commit()
        resp = await client.post(
            "/api/v1/leaves/apply-leave",
            json={
                "empid": str(employee.id),
                "startdate": "2026-03-02",
                "enddate": "2026-03-03",
                "leavetype": "casual",
            },
        )
        assert resp.status_code == 201
        assert resp.json()["data"]["employee_name"] == employee.emp_name

    async def test_apply_insufficient_balance_problem_document(self, client, db, policy):
        emp = await seed_employee(db, casual_taken=10)
        await db.commit()
        resp = await client.post(
            "/api/v1/leave-management/apply",
            json={
                "empId": str(emp.id),
                "leaveType": "Casual Leave",
                "startDate": "2026-03-02",
                "endDate": "2026-03-06",
                "appliedDays": 5,
            },
        )
        assert resp.status_code == 400
        body = resp.json()
        assert body["type"].endswith("/insufficient-balance")
        assert body["instance"] == "/api/v1/leave-management/apply"

    async def test_apply_invalid_leave_type(self, client, db, policy, employee):
        await db.commit()
        resp = await client.post(
            "/api/v1/leave-management/apply",
            json={
                "empId": str(employee.id),
                "leaveType": "Annual Leave",
                "startDate": "2026-03-02",
                "endDate": "2026-03-02",
                "appliedDays": 1,
            },
        )
        assert resp.status_code == 422

    async def test_apply_end_before_start(self, client, db, policy, employee):
        await db.commit()
        resp = await client.post(
            "/api/v1/leave-management/apply",
            json={
                "empId": str(employee.id),
                "leaveType": "sick",
                "startDate": "2026-03-05",
                "endDate": "2026-03-02",
                "appliedDays": 1,
            },
        )
        assert resp.status_code == 422

    async def test_status_routes_share_lifecycle(self, client, db, policy, employee):
        leave = await _apply(db, employee, 2)
        await db.commit()

        resp = await client.patch(
            f"/api/v1/leave-management/status/{leave.id}", json={"status": "rejected"},
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "rejected"

        # Rejecting again through the other route is a no-op on the counter
        resp = await client.patch(
            f"/api/v1/leaves/leave-management/status/{leave.id}", json={"status": "rejected"},
        )
        assert resp.status_code == 200

        resp = await client.get(f"/api/v1/leave-management/balance/{employee.id}")
        assert resp.json()["casual_leave_used"] == 0

    async def test_status_invalid_value(self, client, db, policy, employee):
        leave = await _apply(db, employee, 1)
        await db.commit()
        resp = await client.patch(
            f"/api/v1/leave-management/status/{leave.id}", json={"status": "maybe"},
        )
        assert resp.status_code == 422
        assert "status" in resp.json()["errors"]

    async def test_status_unknown_leave(self, client, db, policy):
        await db.commit()
        resp = await client.patch(
            f"/api/v1/leave-management/status/{uuid.uuid4()}", json={"status": "approved"},
        )
        assert resp.status_code == 404

    async def test_manager_leave_status_routes(self, client, db, policy, manager, employee):
        await _apply(db, employee, 1)
        await db.commit()

        resp = await client.get(f"/api/v1/leaves/manager-leave-status/{manager.emp_name}")
        assert resp.status_code == 200
        assert resp.json()["leave_records"][0]["employee_name"] == employee.emp_name

        resp = await client.get("/api/v1/leaves/manager-leave-status")
        assert resp.status_code == 200
        assert resp.json()["viewed_by"] == "Manager"

        resp = await client.get("/api/v1/leaves/manager-leave-status/Nobody")
        assert resp.status_code == 404

    async def test_mgr_leave_balance(self, client, db, policy, manager, employee):
        await db.commit()
        resp = await client.get(f"/api/v1/leave-management/mgr_leave_balance/{manager.emp_name}")
        assert resp.status_code == 200
        rows = resp.json()
        assert len(rows) == 1
        assert rows[0]["emp_name"] == employee.emp_name
        assert rows[0]["sick_leave_left"] == 12

        resp = await client.get("/api/v1/leave-management/mgr_leave_balance/Nobody")
        assert resp.status_code == 200
        assert resp.json() == []

    async def test_balance_bad_id(self, client):
        resp = await client.get("/api/v1/leave-management/balance/not-a-uuid")
        assert resp.status_code == 422
