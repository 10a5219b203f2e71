"""Leave request state machine.

States: pending, approved, rejected. A request may be moved to ``approved``
or ``rejected`` from any state; none is terminal. The only transition that
touches the employee's counter is entering ``rejected`` from a non-rejected
state, which releases the request's days.

Moving a rejected request back to ``approved`` does NOT re-consume its days,
so a request releases its days at most once: rejecting it again later leaves
the counter untouched. ``LeaveRequest.days_released`` records the release.
"""

from __future__ import annotations

from leavetrack.common.constants import LeaveStatus
from leavetrack.common.exceptions import ValidationException

ALLOWED_TARGETS: frozenset[LeaveStatus] = frozenset(
    {LeaveStatus.approved, LeaveStatus.rejected}
)


def parse_target(value: str) -> LeaveStatus:
    """Validate a requested target status."""
    try:
        status = LeaveStatus(value.strip().lower())
    except ValueError:
        status = None
    if status not in ALLOWED_TARGETS:
        raise ValidationException(
            {"status": ['Invalid status value. Must be "approved" or "rejected".']}
        )
    return status


def counter_delta(old: LeaveStatus, new: LeaveStatus, applied_days: int) -> int:
    """Counter adjustment caused by moving a request from ``old`` to ``new``."""
    if old != LeaveStatus.rejected and new == LeaveStatus.rejected:
        return -applied_days
    return 0
