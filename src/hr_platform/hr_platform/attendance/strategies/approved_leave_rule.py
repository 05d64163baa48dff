from __future__ import annotations

from datetime import date
from typing import Optional

from ...core.enums import AttendanceStatus
from ...leaves.repository import LeaveRepository
from ...users.model import User
from .base import DailyStatusRule, MarkDecision, MarkOutcome


class ApprovedLeaveRule(DailyStatusRule):
    def __init__(self, leaves: LeaveRepository):
        self._leaves = leaves

    def decide(self, *, user: User, work_date: date) -> Optional[MarkDecision]:
        if self._leaves.has_approved_leave_on(user_id=user.user_id, day=work_date):
            return MarkDecision(outcome=MarkOutcome.MARKED_LEAVE, status=AttendanceStatus.LEAVE)
        return None
