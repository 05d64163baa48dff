from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from ...core.enums import AttendanceStatus
from ...users.model import User


class MarkOutcome(str, Enum):
    SKIPPED_WEEKEND = "skipped_weekend"
    SKIPPED_EXISTING = "skipped_existing"
    MARKED_LEAVE = "marked_leave"
    MARKED_ABSENT = "marked_absent"


@dataclass(frozen=True)
class MarkDecision:
    outcome: MarkOutcome
    # Status to write, or None when nothing should be written.
    status: Optional[AttendanceStatus] = None


class DailyStatusRule(ABC):
    """Strategy Pattern: one layer of the daily attendance precedence.

    A rule either claims the (user, day) pair by returning a decision, or
    returns None to let the next rule look at it.
    """

    @abstractmethod
    def decide(self, *, user: User, work_date: date) -> Optional[MarkDecision]:
        raise NotImplementedError
