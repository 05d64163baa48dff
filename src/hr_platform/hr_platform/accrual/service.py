from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from ..common.datetime_utils import today_local
from ..database.mysql_base import TransactionManager
from ..leaves.repository import LeaveBalanceRepository
from ..users.repository import UserRepository
from .calculator import AccrualCalculator

logger = logging.getLogger(__name__)


@dataclass
class AccrualRunResult:
    as_of: date
    year: int
    processed: int = 0
    credited: int = 0
    errors: int = 0
    changes: list[dict] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.errors == 0


class AccrualService:
    """Batch use case behind ``leave:calculate-accrual``."""

    def __init__(
        self,
        balances: LeaveBalanceRepository,
        users: UserRepository,
        calculator: AccrualCalculator,
        tx: TransactionManager,
    ):
        self._balances = balances
        self._users = users
        self._calculator = calculator
        self._tx = tx

    def run(
        self,
        *,
        user_id: Optional[int] = None,
        year: Optional[int] = None,
        today: Optional[date] = None,
    ) -> AccrualRunResult:
        as_of = today or today_local()
        result = AccrualRunResult(as_of=as_of, year=year or as_of.year)

        balances = self._balances.list_attendance_based(user_id=user_id)
        if not balances:
            logger.warning("[Leave Accrual] No attendance-based leave balances found")
            return result

        for balance in balances:
            try:
                with self._tx.atomic():
                    # Re-read under lock so overlapping runs see each other's credit.
                    current = self._balances.get(
                        user_id=balance.user_id,
                        leave_type_id=balance.leave_type_id,
                        for_update=True,
                    ) or balance
                    user = self._users.get_by_id(current.user_id)
                    joining_date = user.joining_date if user else None
                    earned = self._calculator.accrue(current, joining_date, as_of, result.year)
                result.processed += 1
                if earned > 0:
                    result.credited += earned
                    result.changes.append(
                        {
                            "balance_id": current.balance_id,
                            "user_id": current.user_id,
                            "leave_type_id": current.leave_type_id,
                            "earned": earned,
                        }
                    )
            except Exception:
                logger.exception("[Leave Accrual] Error processing balance_id=%s", balance.balance_id)
                result.errors += 1

        logger.info(
            "[Leave Accrual] Completed %s",
            {
                "as_of": as_of.isoformat(),
                "year": result.year,
                "processed": result.processed,
                "credited_days": result.credited,
                "errors": result.errors,
                "changes": result.changes,
            },
        )
        return result
