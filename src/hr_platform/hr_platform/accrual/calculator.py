from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..leaves.model import LeaveBalance
from ..leaves.repository import LeaveBalanceRepository


@dataclass(frozen=True)
class AccrualWindow:
    start: date
    end: date

    @property
    def is_empty(self) -> bool:
        return self.start > self.end


def accrual_window(
    balance: LeaveBalance,
    joining_date: Optional[date],
    as_of: date,
    year: Optional[int] = None,
) -> AccrualWindow:
    """Days not yet credited for ``balance`` within ``year`` (default: as_of's year).

    The day of the previous accrual was already counted, so the window opens
    the day after it. Joining day itself counts.
    """
    year = year or as_of.year
    candidates = [date(year, 1, 1)]
    if joining_date is not None:
        candidates.append(joining_date)
    if balance.last_accrual_date is not None:
        candidates.append(balance.last_accrual_date + timedelta(days=1))
    return AccrualWindow(start=max(candidates), end=min(as_of, date(year, 12, 31)))


class AccrualCalculator:
    """Converts attendance ledger rows into earned leave days."""

    def __init__(self, attendance: AttendanceRepository, balances: LeaveBalanceRepository):
        self._attendance = attendance
        self._balances = balances

    def earned_for(self, balance: LeaveBalance, window: AccrualWindow) -> int:
        if not balance.accrues_from_attendance or window.is_empty:
            return 0
        days = self._attendance.count_qualifying_days(
            user_id=balance.user_id, start=window.start, end=window.end
        )
        return days // int(balance.attendance_days_threshold)

    def accrue(
        self,
        balance: LeaveBalance,
        joining_date: Optional[date],
        as_of: date,
        year: Optional[int] = None,
    ) -> int:
        """Credit whole days earned since the last accrual and return them.

        Nothing is written when nothing is earned, so partial progress toward
        the threshold keeps counting on the next run.
        """
        window = accrual_window(balance, joining_date, as_of, year)
        earned = self.earned_for(balance, window)
        if earned <= 0:
            return 0

        credited = self._balances.credit_accrual(
            balance_id=balance.balance_id,
            earned=earned,
            accrual_date=window.end,
            expected_last_accrual=balance.last_accrual_date,
        )
        return earned if credited else 0
