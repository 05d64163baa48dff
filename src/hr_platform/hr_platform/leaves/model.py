from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import AccrualType, ApprovalStatus, ApproverType, LeaveKind, LeaveStatus


@dataclass(frozen=True)
class LeaveType:
    leave_type_id: int
    code: str
    name: str
    is_active: bool = True


@dataclass(frozen=True)
class LeaveBalance:
    """Per (user, leave type) entitlement. ``available`` never goes below 0."""

    balance_id: int
    user_id: int
    leave_type_id: int
    balance: Decimal
    used: Decimal
    accrual_type: AccrualType = AccrualType.MANUAL
    attendance_days_threshold: Optional[int] = None
    last_accrual_date: Optional[date] = None

    @property
    def available(self) -> Decimal:
        return max(Decimal("0"), Decimal(self.balance) - Decimal(self.used))

    @property
    def accrues_from_attendance(self) -> bool:
        return self.accrual_type == AccrualType.ATTENDANCE and (self.attendance_days_threshold or 0) > 0

    def can_deduct(self, days) -> bool:
        return self.available >= Decimal(days)


@dataclass(frozen=True)
class PlannedStep:
    """An approval step before it is persisted."""

    step: int
    approver_type: ApproverType


@dataclass(frozen=True)
class ApprovalStep:
    request_id: int
    step: int
    approver_type: ApproverType
    status: ApprovalStatus = ApprovalStatus.PENDING
    approver_id: Optional[int] = None
    comment: Optional[str] = None
    acted_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status == ApprovalStatus.PENDING


@dataclass(frozen=True)
class LeaveRequest:
    request_id: int
    user_id: int
    leave_type_id: int
    kind: LeaveKind
    reason: str
    status: LeaveStatus
    current_approval_step: int
    cover_person_id: Optional[int] = None
    version: int = 0
    dates: tuple[date, ...] = ()
    steps: tuple[ApprovalStep, ...] = ()
    leave_type_code: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status == LeaveStatus.PENDING

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @property
    def days(self) -> int:
        return len(self.dates)

    def step(self, number: int) -> Optional[ApprovalStep]:
        return next((s for s in self.steps if s.step == number), None)

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "user_id": self.user_id,
            "leave_type_id": self.leave_type_id,
            "leave_type": self.leave_type_code,
            "kind": self.kind.value,
            "reason": self.reason,
            "cover_person_id": self.cover_person_id,
            "status": self.status.value,
            "current_approval_step": self.current_approval_step,
            "total_steps": self.total_steps,
            "dates": [d.isoformat() for d in self.dates],
            "approvals": [
                {
                    "step": s.step,
                    "approver_type": s.approver_type.value,
                    "approver_id": s.approver_id,
                    "status": s.status.value,
                    "comment": s.comment,
                    "acted_at": s.acted_at.strftime("%Y-%m-%d %H:%M") if s.acted_at else None,
                }
                for s in self.steps
            ],
        }


@dataclass(frozen=True)
class BalanceView:
    """Read-model: one leave type's balance for an employee, defaults filled in."""

    leave_type_id: int
    leave_type_code: str
    leave_type_name: str
    balance: Decimal = Decimal("0")
    used: Decimal = Decimal("0")
    available: Decimal = Decimal("0")
    accrual_type: AccrualType = AccrualType.MANUAL
    attendance_days_threshold: Optional[int] = None
