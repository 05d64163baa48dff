from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar

from ..core.enums import ApproverType
from ..users.model import User
from ..users.repository import UserRepository
from ..users.service import OrgDirectory
from .model import LeaveRequest


class Approver(ABC):
    """One kind of sign-off in an approval chain.

    Each variant answers a single question: may ``actor`` act on this step
    of ``request``?
    """

    approver_type: ClassVar[ApproverType]

    @abstractmethod
    def authorize(self, actor: User, request: LeaveRequest) -> bool:
        raise NotImplementedError


class CoverPersonApprover(Approver):
    approver_type = ApproverType.COVER_PERSON

    def authorize(self, actor: User, request: LeaveRequest) -> bool:
        return request.cover_person_id is not None and actor.user_id == request.cover_person_id


class ManagerApprover(Approver):
    approver_type = ApproverType.MANAGER

    def __init__(self, directory: OrgDirectory, users: UserRepository):
        self._directory = directory
        self._users = users

    def authorize(self, actor: User, request: LeaveRequest) -> bool:
        if not (self._directory.is_manager(actor) or self._directory.is_admin(actor)):
            return False
        requester = self._users.get_by_id(request.user_id)
        if requester is None:
            return False
        return self._directory.manages(actor, requester)


class AdminApprover(Approver):
    approver_type = ApproverType.ADMIN

    def __init__(self, directory: OrgDirectory):
        self._directory = directory

    def authorize(self, actor: User, request: LeaveRequest) -> bool:
        return self._directory.is_admin(actor)


class ApproverRegistry:
    """Maps each approver type to the variant that authorizes it."""

    def __init__(self, directory: OrgDirectory, users: UserRepository):
        approvers: tuple[Approver, ...] = (
            CoverPersonApprover(),
            ManagerApprover(directory, users),
            AdminApprover(directory),
        )
        self._by_type = {a.approver_type: a for a in approvers}

    def for_type(self, approver_type: ApproverType) -> Approver:
        return self._by_type[approver_type]
