from __future__ import annotations

from datetime import date
from typing import Optional

from ...common.datetime_utils import day_name
from ...users.model import User
from .base import DailyStatusRule, MarkDecision, MarkOutcome


class WeekendRule(DailyStatusRule):
    """Per-employee weekend: nothing is written."""

    def decide(self, *, user: User, work_date: date) -> Optional[MarkDecision]:
        if user.is_weekend(day_name(work_date)):
            return MarkDecision(outcome=MarkOutcome.SKIPPED_WEEKEND)
        return None
