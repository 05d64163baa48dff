from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Sequence

from ..leaves.repository import LeaveRepository
from ..users.model import User
from .repository import AttendanceRepository
from .strategies.absent_rule import AbsentRule
from .strategies.approved_leave_rule import ApprovedLeaveRule
from .strategies.base import DailyStatusRule, MarkDecision
from .strategies.existing_record_rule import ExistingRecordRule
from .strategies.weekend_rule import WeekendRule


@dataclass(frozen=True)
class DailyStatusChain:
    """Ordered rules, first match wins. The last rule must always match."""

    rules: Sequence[DailyStatusRule]

    def decide(self, *, user: User, work_date: date) -> MarkDecision:
        for rule in self.rules:
            decision = rule.decide(user=user, work_date=work_date)
            if decision is not None:
                return decision
        raise LookupError(f"No attendance rule matched user_id={user.user_id} on {work_date}")


@dataclass
class DailyStatusChainFactory:
    """Factory Pattern: assemble the precedence weekend > existing > leave > absent."""

    def build(self, *, attendance: AttendanceRepository, leaves: LeaveRepository) -> DailyStatusChain:
        return DailyStatusChain(
            rules=(
                WeekendRule(),
                ExistingRecordRule(attendance),
                ApprovedLeaveRule(leaves),
                AbsentRule(),
            )
        )
