from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import require_max_length, require_non_empty
from ..core.constants import COMMENT_MAX_LENGTH
from ..core.enums import ApprovalAction, ApproverType
from ..core.exceptions import (
    AuthorizationError,
    InsufficientBalanceError,
    NoPendingApproval,
    StaleApprovalError,
    ValidationError,
)
from ..database.mysql_base import TransactionManager
from ..notifications.notifier import Notifier, safe_notify
from ..users.model import User
from ..users.repository import UserRepository
from .approvers import ApproverRegistry
from .balance_service import LeaveBalanceService
from .chain import ApprovalChain
from .model import LeaveRequest
from .policy import LeavePolicy
from .repository import LeaveRepository

logger = logging.getLogger(__name__)


class ApprovalService:
    """Moves leave requests through their approval chain.

    A decision, the cursor move and (on the last step) the balance deduction
    commit together. The request row is locked for the duration and every
    write is guarded on the state that was read, so a concurrent decision on
    the same step fails with ``StaleApprovalError`` instead of applying twice.
    """

    def __init__(
        self,
        leaves: LeaveRepository,
        users: UserRepository,
        balances: LeaveBalanceService,
        approvers: ApproverRegistry,
        notifier: Notifier,
        tx: TransactionManager,
        policy: Optional[LeavePolicy] = None,
    ):
        self._leaves = leaves
        self._users = users
        self._balances = balances
        self._approvers = approvers
        self._notifier = notifier
        self._tx = tx
        self._policy = policy or LeavePolicy()

    @staticmethod
    def _clean_comment(action: ApprovalAction, comment: Optional[str]) -> Optional[str]:
        if action == ApprovalAction.REJECT:
            comment = require_non_empty(comment or "", "Comment")
        else:
            comment = (comment or "").strip() or None
        return require_max_length(comment, "Comment", COMMENT_MAX_LENGTH)

    def process(
        self,
        request_id: int,
        actor: User,
        action: ApprovalAction,
        comment: Optional[str] = None,
        *,
        now: Optional[datetime] = None,
    ) -> LeaveRequest:
        try:
            action = ApprovalAction(action)
        except ValueError:
            raise ValidationError("Action must be 'approve' or 'reject'")
        comment = self._clean_comment(action, comment)
        now = now or now_local()

        with self._tx.atomic():
            request = self._leaves.get_for_update(int(request_id))
            if request is None:
                raise ValidationError("Leave request does not exist")
            if not request.is_pending:
                raise NoPendingApproval(f"Leave request is already {request.status.value}")

            chain = ApprovalChain.of(request)
            step = chain.current_step()
            if step is None:
                raise NoPendingApproval("No pending approval found.")
            if not self._approvers.for_type(step.approver_type).authorize(actor, request):
                raise AuthorizationError("You are not authorized to act on this approval step")

            transition = chain.transition(action)

            if not self._leaves.record_step_decision(
                request_id=request.request_id,
                step=transition.step,
                approver_id=actor.user_id,
                status=transition.step_status,
                comment=comment,
                acted_at=now,
            ):
                raise StaleApprovalError("This approval step was already decided")

            if not self._leaves.advance(
                request_id=request.request_id,
                expected_step=request.current_approval_step,
                expected_version=request.version,
                next_step=transition.next_step,
                status=transition.request_status,
            ):
                raise StaleApprovalError("Leave request changed while it was being processed")

            if transition.completes_request:
                self._deduct(request)

        logger.info(
            "Leave request %s step %s %s by user_id=%s -> %s",
            request.request_id,
            transition.step,
            transition.step_status.value,
            actor.user_id,
            transition.request_status.value,
        )

        if transition.completes_request:
            self._notify_approved(request)

        updated = self._leaves.get(request.request_id)
        return updated if updated is not None else request

    def _deduct(self, request: LeaveRequest) -> None:
        if self._balances.deduct_leave(request.user_id, request.leave_type_id, request.days):
            return
        if self._policy.strict_balance:
            raise InsufficientBalanceError(
                f"Leave balance cannot cover {request.days} day(s) for this request"
            )
        logger.error(
            "[Leave Balance] Approved leave request %s exceeds the available balance: "
            "user_id=%s leave_type_id=%s days=%s",
            request.request_id,
            request.user_id,
            request.leave_type_id,
            request.days,
        )

    def _notify_approved(self, request: LeaveRequest) -> None:
        employee = self._users.get_by_id(request.user_id)
        if employee is None:
            logger.warning("Leave request %s approved for a missing user_id=%s", request.request_id, request.user_id)
            return
        approved = self._leaves.get(request.request_id) or request
        safe_notify(self._notifier.notify_leave_approved, approved, employee, label="Leave Approved")

    # -------- Queries --------
    def can_approve(self, actor: User, request: LeaveRequest) -> bool:
        if not request.is_pending:
            return False
        step = ApprovalChain.of(request).current_step()
        if step is None:
            return False
        return self._approvers.for_type(step.approver_type).authorize(actor, request)

    def pending_approvals_for(self, actor: User) -> Sequence[LeaveRequest]:
        candidates: list[LeaveRequest] = list(
            self._leaves.list_awaiting(approver_type=ApproverType.COVER_PERSON, cover_person_id=actor.user_id)
        )
        if actor.is_manager or actor.is_admin:
            candidates.extend(self._leaves.list_awaiting(approver_type=ApproverType.MANAGER))
        if actor.is_admin:
            candidates.extend(self._leaves.list_awaiting(approver_type=ApproverType.ADMIN))

        seen: set[int] = set()
        out: list[LeaveRequest] = []
        for request in candidates:
            if request.request_id in seen:
                continue
            seen.add(request.request_id)
            if self.can_approve(actor, request):
                out.append(request)
        return out
