from __future__ import annotations

from datetime import date
from typing import Optional

from ...users.model import User
from ..repository import AttendanceRepository
from .base import DailyStatusRule, MarkDecision, MarkOutcome


class ExistingRecordRule(DailyStatusRule):
    """A clock-in (or an earlier batch run) already covers the day."""

    def __init__(self, attendance: AttendanceRepository):
        self._attendance = attendance

    def decide(self, *, user: User, work_date: date) -> Optional[MarkDecision]:
        if self._attendance.get_for_user_and_date(user.user_id, work_date):
            return MarkDecision(outcome=MarkOutcome.SKIPPED_EXISTING)
        return None
