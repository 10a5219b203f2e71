"""Common module — shared utilities for LeaveTrack."""

from leavetrack.common.constants import (
    NOT_AVAILABLE,
    RECENT_ATTENDANCE_LIMIT,
    LeaveStatus,
    LeaveType,
)
from leavetrack.common.exceptions import (
    AppException,
    BadRequestException,
    ConflictError,
    InsufficientBalanceException,
    NotFoundException,
    ServerError,
    ValidationException,
    register_exception_handlers,
)
from leavetrack.common.logging import setup_logging

__all__ = [
    # Constants / Enums
    "LeaveStatus",
    "LeaveType",
    "NOT_AVAILABLE",
    "RECENT_ATTENDANCE_LIMIT",
    # Exceptions
    "AppException",
    "BadRequestException",
    "ConflictError",
    "InsufficientBalanceException",
    "NotFoundException",
    "ServerError",
    "ValidationException",
    "register_exception_handlers",
    # Logging
    "setup_logging",
]
