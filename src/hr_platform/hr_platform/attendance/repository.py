from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, OpenAttendance


class AttendanceRepository(Protocol):
    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create_synthesized(self, *, user_id: int, work_date: date, status: AttendanceStatus) -> bool:
        """Insert a zero-minute, clock-less record.

        Returns False (and writes nothing) when a record for the same
        (user, date) already exists.
        """

        raise NotImplementedError

    def count_qualifying_days(self, *, user_id: int, start: date, end: date) -> int:
        """Rows in [start, end] whose status is anything but ABSENT."""

        raise NotImplementedError

    def list_open_for_date(self, work_date: date) -> Sequence[OpenAttendance]:
        """Non-admin users clocked in without clock-out on ``work_date``."""

        raise NotImplementedError
