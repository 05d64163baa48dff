from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import today_local
from ..common.validators import require_max_length, require_min_length, require_non_empty
from ..core.constants import REASON_MAX_LENGTH, REASON_MIN_LENGTH
from ..core.enums import LeaveKind
from ..core.exceptions import AuthorizationError, StateError, ValidationError
from ..database.mysql_base import TransactionManager
from ..users.model import User
from ..users.repository import UserRepository
from .chain import ApprovalChain
from .model import LeaveRequest, LeaveType
from .policy import LeavePolicy
from .repository import LeaveRepository, LeaveTypeRepository

logger = logging.getLogger(__name__)


class LeaveApplicationService:
    """Use cases for filing and withdrawing leave requests."""

    def __init__(
        self,
        leaves: LeaveRepository,
        leave_types: LeaveTypeRepository,
        users: UserRepository,
        tx: TransactionManager,
        policy: Optional[LeavePolicy] = None,
    ):
        self._leaves = leaves
        self._leave_types = leave_types
        self._users = users
        self._tx = tx
        self._policy = policy or LeavePolicy()

    # -------- Validation helpers --------
    @staticmethod
    def _clean_reason(reason: str) -> str:
        reason = require_non_empty(reason, "Reason")
        require_min_length(reason, "Reason", REASON_MIN_LENGTH)
        return require_max_length(reason, "Reason", REASON_MAX_LENGTH)

    @staticmethod
    def _clean_dates(dates: Iterable[date]) -> list[date]:
        unique = sorted(set(dates or ()))
        if not unique:
            raise ValidationError("At least one leave date is required")
        return unique

    def _resolve_leave_type(self, code: Optional[str], kind: LeaveKind) -> LeaveType:
        code = (code or "").strip() or self._policy.default_leave_type(kind)
        leave_type = self._leave_types.get_by_code(code)
        if leave_type is None or not leave_type.is_active:
            raise ValidationError(f"Leave type '{code}' is not available")
        return leave_type

    def _create(
        self,
        *,
        applicant: User,
        kind: LeaveKind,
        leave_type: LeaveType,
        reason: str,
        dates: Sequence[date],
        cover_person_id: Optional[int],
    ) -> LeaveRequest:
        steps = ApprovalChain.plan(self._policy.steps_for(kind))
        with self._tx.atomic():
            request_id = self._leaves.create_request(
                user_id=applicant.user_id,
                leave_type_id=leave_type.leave_type_id,
                kind=kind,
                reason=reason,
                cover_person_id=cover_person_id,
                dates=dates,
                steps=steps,
            )
        logger.info(
            "Leave request %s created: user_id=%s kind=%s type=%s days=%s",
            request_id,
            applicant.user_id,
            kind.value,
            leave_type.code,
            len(dates),
        )
        created = self._leaves.get(request_id)
        if created is None:
            raise StateError("Leave request could not be read back after creation")
        return created

    # -------- Use cases --------
    def create_advance(
        self,
        applicant: User,
        *,
        reason: str,
        dates: Iterable[date],
        cover_person_id: Optional[int],
        leave_type_code: Optional[str] = None,
        today: Optional[date] = None,
    ) -> LeaveRequest:
        today = today or today_local()
        reason = self._clean_reason(reason)
        days = self._clean_dates(dates)
        if any(d <= today for d in days):
            raise ValidationError("Advance leave dates must be in the future")

        if not cover_person_id:
            raise ValidationError("A cover person is required for advance leave")
        if int(cover_person_id) == applicant.user_id:
            raise ValidationError("You cannot be your own cover person")
        if self._users.get_by_id(int(cover_person_id)) is None:
            raise ValidationError("Cover person does not exist")

        leave_type = self._resolve_leave_type(leave_type_code, LeaveKind.ADVANCE)
        return self._create(
            applicant=applicant,
            kind=LeaveKind.ADVANCE,
            leave_type=leave_type,
            reason=reason,
            dates=days,
            cover_person_id=int(cover_person_id),
        )

    def create_post(
        self,
        applicant: User,
        *,
        reason: str,
        dates: Iterable[date],
        leave_type_code: Optional[str] = None,
        today: Optional[date] = None,
    ) -> LeaveRequest:
        today = today or today_local()
        reason = self._clean_reason(reason)
        days = self._clean_dates(dates)
        if any(d > today for d in days):
            raise ValidationError("Post leave dates must be today or in the past")

        leave_type = self._resolve_leave_type(leave_type_code, LeaveKind.POST)
        return self._create(
            applicant=applicant,
            kind=LeaveKind.POST,
            leave_type=leave_type,
            reason=reason,
            dates=days,
            cover_person_id=None,
        )

    def cancel(self, request_id: int, owner: User) -> LeaveRequest:
        request = self._leaves.get(int(request_id))
        if request is None:
            raise ValidationError("Leave request does not exist")
        if request.user_id != owner.user_id:
            raise AuthorizationError("Only the applicant can cancel this leave request")
        if not request.is_pending:
            raise StateError(f"Leave request is already {request.status.value}")

        with self._tx.atomic():
            if not self._leaves.cancel(request_id=request.request_id, user_id=owner.user_id):
                raise StateError("Leave request is no longer pending")

        logger.info("Leave request %s cancelled by user_id=%s", request.request_id, owner.user_id)
        cancelled = self._leaves.get(request.request_id)
        if cancelled is None:
            raise StateError("Leave request could not be read back after cancelling")
        return cancelled

    def warning_dates(self, dates: Iterable[date], *, today: Optional[date] = None) -> list[date]:
        """Future dates close enough to today that the applicant should confirm them."""
        today = today or today_local()
        window = self._policy.warning_days
        return [d for d in sorted(set(dates or ())) if 0 < (d - today).days <= window]

    def list_for_employee(self, employee_id: int) -> Sequence[LeaveRequest]:
        return self._leaves.list_for_user(int(employee_id))
