from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import AccrualType, ApprovalStatus, ApproverType, LeaveKind, LeaveStatus
from .model import LeaveBalance, LeaveRequest, LeaveType, PlannedStep


class LeaveTypeRepository(Protocol):
    def get_by_code(self, code: str) -> Optional[LeaveType]:
        raise NotImplementedError

    def get_by_id(self, leave_type_id: int) -> Optional[LeaveType]:
        raise NotImplementedError

    def list_active(self) -> Sequence[LeaveType]:
        raise NotImplementedError


class LeaveRepository(Protocol):
    def create_request(
        self,
        *,
        user_id: int,
        leave_type_id: int,
        kind: LeaveKind,
        reason: str,
        cover_person_id: Optional[int],
        dates: Sequence[date],
        steps: Sequence[PlannedStep],
    ) -> int:
        """Insert the request, its dates and its pending steps. Callers own the transaction."""

        raise NotImplementedError

    def get(self, request_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def get_for_update(self, request_id: int) -> Optional[LeaveRequest]:
        """Like ``get`` but row-locks the request until the transaction ends."""

        raise NotImplementedError

    def record_step_decision(
        self,
        *,
        request_id: int,
        step: int,
        approver_id: int,
        status: ApprovalStatus,
        comment: Optional[str],
        acted_at: datetime,
    ) -> bool:
        """Only succeeds while the step is still pending."""

        raise NotImplementedError

    def advance(
        self,
        *,
        request_id: int,
        expected_step: int,
        expected_version: int,
        next_step: int,
        status: LeaveStatus,
    ) -> bool:
        """Move the cursor; only succeeds if the request is still pending at
        ``expected_step`` with ``expected_version``."""

        raise NotImplementedError

    def cancel(self, *, request_id: int, user_id: int) -> bool:
        raise NotImplementedError

    def has_approved_leave_on(self, *, user_id: int, day: date) -> bool:
        raise NotImplementedError

    def list_awaiting(
        self,
        *,
        approver_type: ApproverType,
        cover_person_id: Optional[int] = None,
    ) -> Sequence[LeaveRequest]:
        """Pending requests whose current step is of ``approver_type``."""

        raise NotImplementedError

    def list_for_user(self, user_id: int, *, limit: int = 200) -> Sequence[LeaveRequest]:
        raise NotImplementedError


class LeaveBalanceRepository(Protocol):
    def get(self, *, user_id: int, leave_type_id: int, for_update: bool = False) -> Optional[LeaveBalance]:
        raise NotImplementedError

    def create_default(self, *, user_id: int, leave_type_id: int) -> None:
        """Insert balance=0, used=0, manual. No-op if the row exists."""

        raise NotImplementedError

    def add_used(self, *, balance_id: int, days: Decimal) -> bool:
        """Increase ``used`` only if ``balance - used >= days``."""

        raise NotImplementedError

    def set_balance(self, *, balance_id: int, balance: Decimal) -> bool:
        raise NotImplementedError

    def save_settings(
        self,
        *,
        balance_id: int,
        balance: Decimal,
        accrual_type: AccrualType,
        attendance_days_threshold: Optional[int],
    ) -> bool:
        """Attendance mode also clears ``last_accrual_date`` so the next run
        recounts the year from the start."""

        raise NotImplementedError

    def credit_accrual(
        self,
        *,
        balance_id: int,
        earned: int,
        accrual_date: date,
        expected_last_accrual: Optional[date],
    ) -> bool:
        """Add ``earned`` days and stamp ``accrual_date``; guarded on the
        previous ``last_accrual_date`` so overlapping runs credit once."""

        raise NotImplementedError

    def list_attendance_based(self, *, user_id: Optional[int] = None) -> Sequence[LeaveBalance]:
        raise NotImplementedError
