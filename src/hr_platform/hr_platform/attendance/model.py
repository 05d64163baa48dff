from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus
from ..users.model import User


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one ledger row per (user, work_date)."""

    attendance_id: int
    user_id: int
    work_date: date
    status: AttendanceStatus
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    gross_minutes: int = 0
    break_minutes: int = 0
    net_minutes: int = 0
    is_late: bool = False
    late_minutes: int = 0
    early_exit_minutes: int = 0
    note: Optional[str] = None


@dataclass(frozen=True)
class OpenAttendance:
    """Read-model: a user who clocked in on a day but never clocked out."""

    user: User
    work_date: date
    clock_in: datetime
