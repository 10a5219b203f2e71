"""Enums and constants for LeaveTrack — matching PostgreSQL ENUM types."""

from __future__ import annotations

import enum


# ── Leave ───────────────────────────────────────────────────────────

class LeaveType(str, enum.Enum):
    sick = "sick"
    casual = "casual"

    @classmethod
    def parse(cls, value: str) -> "LeaveType":
        """Accept both short codes and the display labels ("Sick Leave")."""
        normalized = value.strip().lower()
        if normalized.endswith(" leave"):
            normalized = normalized[: -len(" leave")].strip()
        return cls(normalized)

    @property
    def label(self) -> str:
        return f"{self.value.capitalize()} Leave"


class LeaveStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


# ── Misc constants ──────────────────────────────────────────────────

NOT_AVAILABLE = "NA"
RECENT_ATTENDANCE_LIMIT = 4
