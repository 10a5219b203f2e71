"""Employee directory — Employee model, profile and dashboard services."""

from leavetrack.employees.models import Employee

__all__ = ["Employee"]
