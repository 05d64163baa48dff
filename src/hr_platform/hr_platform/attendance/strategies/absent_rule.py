from __future__ import annotations

from datetime import date
from typing import Optional

from ...core.enums import AttendanceStatus
from ...users.model import User
from .base import DailyStatusRule, MarkDecision, MarkOutcome


class AbsentRule(DailyStatusRule):
    """Fallback: no clock-in, no leave, working day."""

    def decide(self, *, user: User, work_date: date) -> Optional[MarkDecision]:
        return MarkDecision(outcome=MarkOutcome.MARKED_ABSENT, status=AttendanceStatus.ABSENT)
