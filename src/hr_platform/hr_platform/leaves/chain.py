from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from ..core.enums import ApprovalAction, ApprovalStatus, ApproverType, LeaveStatus
from ..core.exceptions import NoPendingApproval, ValidationError
from .model import ApprovalStep, LeaveRequest, PlannedStep


@dataclass(frozen=True)
class ChainTransition:
    """Outcome of acting on the current step."""

    step: int
    step_status: ApprovalStatus
    request_status: LeaveStatus
    next_step: int

    @property
    def completes_request(self) -> bool:
        return self.request_status == LeaveStatus.APPROVED


@dataclass(frozen=True)
class ApprovalChain:
    """Workflow cursor over a request's ordered sign-off steps.

    Only the step numbered ``current`` is actionable. Rejection ends the
    chain where it stands; later steps stay pending and are never reached.
    """

    steps: Sequence[ApprovalStep]
    current: int

    @classmethod
    def of(cls, request: LeaveRequest) -> "ApprovalChain":
        return cls(steps=request.steps, current=request.current_approval_step)

    @staticmethod
    def plan(approver_types: Sequence[ApproverType]) -> list[PlannedStep]:
        if not approver_types:
            raise ValidationError("No approval steps configured for this leave kind")
        return [PlannedStep(step=i, approver_type=t) for i, t in enumerate(approver_types, start=1)]

    @property
    def total(self) -> int:
        return len(self.steps)

    def current_step(self) -> Optional[ApprovalStep]:
        for s in self.steps:
            if s.step == self.current and s.is_pending:
                return s
        return None

    def transition(self, action: ApprovalAction) -> ChainTransition:
        step = self.current_step()
        if step is None:
            raise NoPendingApproval("No pending approval found.")

        if action == ApprovalAction.REJECT:
            return ChainTransition(
                step=step.step,
                step_status=ApprovalStatus.REJECTED,
                request_status=LeaveStatus.REJECTED,
                next_step=self.current,
            )

        if self.current < self.total:
            return ChainTransition(
                step=step.step,
                step_status=ApprovalStatus.APPROVED,
                request_status=LeaveStatus.PENDING,
                next_step=self.current + 1,
            )

        return ChainTransition(
            step=step.step,
            step_status=ApprovalStatus.APPROVED,
            request_status=LeaveStatus.APPROVED,
            next_step=self.current,
        )