from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Optional, Sequence

from ..common.validators import require_range
from ..core.constants import MAX_ATTENDANCE_THRESHOLD, MAX_BALANCE_DAYS
from ..core.enums import AccrualType
from ..core.exceptions import AuthorizationError, StateError, ValidationError
from ..database.mysql_base import TransactionManager
from ..users.model import User
from .model import BalanceView, LeaveBalance
from .repository import LeaveBalanceRepository, LeaveTypeRepository

if TYPE_CHECKING:
    from ..accrual.service import AccrualService

logger = logging.getLogger(__name__)


class LeaveBalanceService:
    """Entitlement bookkeeping per (employee, leave type)."""

    def __init__(
        self,
        balances: LeaveBalanceRepository,
        leave_types: LeaveTypeRepository,
        tx: TransactionManager,
        accrual: Optional["AccrualService"] = None,
    ):
        self._balances = balances
        self._leave_types = leave_types
        self._tx = tx
        self._accrual = accrual

    def get_or_create(self, user_id: int, leave_type_id: int, *, for_update: bool = False) -> LeaveBalance:
        existing = self._balances.get(user_id=user_id, leave_type_id=leave_type_id, for_update=for_update)
        if existing is not None:
            return existing
        self._balances.create_default(user_id=user_id, leave_type_id=leave_type_id)
        created = self._balances.get(user_id=user_id, leave_type_id=leave_type_id, for_update=for_update)
        if created is None:
            raise StateError(f"Leave balance for user_id={user_id} could not be created")
        return created

    def deduct_leave(self, user_id: int, leave_type_id: int, days) -> bool:
        """Consume ``days`` from the balance. Returns False, changing nothing,
        when the available amount cannot cover it.

        Runs inside the caller's transaction when there is one.
        """
        days = Decimal(days)
        balance = self.get_or_create(user_id, leave_type_id, for_update=True)
        if not balance.can_deduct(days):
            logger.warning(
                "[Leave Balance] Insufficient balance: user_id=%s leave_type_id=%s available=%s requested=%s",
                user_id,
                leave_type_id,
                balance.available,
                days,
            )
            return False
        return self._balances.add_used(balance_id=balance.balance_id, days=days)

    def adjust_balance(self, actor: User, *, user_id: int, leave_type_id: int, new_balance) -> LeaveBalance:
        if not actor.is_admin:
            raise AuthorizationError("Only admins can adjust leave balances")
        new_balance = Decimal(require_range(Decimal(new_balance), "Balance", low=0, high=MAX_BALANCE_DAYS))

        with self._tx.atomic():
            balance = self.get_or_create(user_id, leave_type_id, for_update=True)
            if balance.accrual_type != AccrualType.MANUAL:
                raise StateError("Attendance-based balances are maintained by the accrual job")
            self._balances.set_balance(balance_id=balance.balance_id, balance=new_balance)

        logger.info(
            "[Leave Balance] user_id=%s leave_type_id=%s balance set to %s by admin_id=%s",
            user_id,
            leave_type_id,
            new_balance,
            actor.user_id,
        )
        return self._reload(user_id, leave_type_id)

    def update_settings(
        self,
        actor: User,
        *,
        user_id: int,
        leave_type_id: int,
        accrual_type: AccrualType,
        balance=None,
        attendance_days_threshold: Optional[int] = None,
    ) -> LeaveBalance:
        if not actor.is_admin:
            raise AuthorizationError("Only admins can change leave balance settings")
        if self._leave_types.get_by_id(leave_type_id) is None:
            raise ValidationError("Leave type does not exist")

        accrual_type = AccrualType(accrual_type)
        if accrual_type == AccrualType.ATTENDANCE:
            if attendance_days_threshold is None:
                raise ValidationError("Attendance days threshold is required for attendance-based accrual")
            threshold: Optional[int] = int(
                require_range(
                    int(attendance_days_threshold),
                    "Attendance days threshold",
                    low=1,
                    high=MAX_ATTENDANCE_THRESHOLD,
                )
            )
            # Attendance mode restarts from zero; the accrual run below recounts the year.
            amount = Decimal("0")
        else:
            threshold = None
            amount = Decimal(
                require_range(
                    Decimal(balance if balance is not None else 0),
                    "Balance",
                    low=0,
                    high=MAX_BALANCE_DAYS,
                )
            )

        with self._tx.atomic():
            current = self.get_or_create(user_id, leave_type_id, for_update=True)
            self._balances.save_settings(
                balance_id=current.balance_id,
                balance=amount,
                accrual_type=accrual_type,
                attendance_days_threshold=threshold,
            )

        logger.info(
            "[Leave Balance] Settings updated: user_id=%s leave_type_id=%s mode=%s balance=%s threshold=%s",
            user_id,
            leave_type_id,
            accrual_type.value,
            amount,
            threshold,
        )

        if accrual_type == AccrualType.ATTENDANCE and self._accrual is not None:
            self._accrual.run(user_id=user_id)

        return self._reload(user_id, leave_type_id)

    def balances_for(self, user_id: int) -> Sequence[BalanceView]:
        out: list[BalanceView] = []
        for leave_type in self._leave_types.list_active():
            b = self._balances.get(user_id=user_id, leave_type_id=leave_type.leave_type_id)
            if b is None:
                out.append(
                    BalanceView(
                        leave_type_id=leave_type.leave_type_id,
                        leave_type_code=leave_type.code,
                        leave_type_name=leave_type.name,
                    )
                )
                continue
            out.append(
                BalanceView(
                    leave_type_id=leave_type.leave_type_id,
                    leave_type_code=leave_type.code,
                    leave_type_name=leave_type.name,
                    balance=b.balance,
                    used=b.used,
                    available=b.available,
                    accrual_type=b.accrual_type,
                    attendance_days_threshold=b.attendance_days_threshold,
                )
            )
        return out

    def _reload(self, user_id: int, leave_type_id: int) -> LeaveBalance:
        b = self._balances.get(user_id=user_id, leave_type_id=leave_type_id)
        if b is None:
            raise StateError("Leave balance disappeared")
        return b
