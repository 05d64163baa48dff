from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Sequence

from ..core.enums import Role
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)


class OrgDirectory:
    """Authorization lookups over the organization hierarchy."""

    def __init__(self, users: UserRepository):
        self._users = users

    @staticmethod
    def is_admin(user: User) -> bool:
        return user.role == Role.ADMIN

    @staticmethod
    def is_manager(user: User) -> bool:
        return user.role == Role.MANAGER

    def managed_sub_department_ids(self, user: User) -> list[int]:
        """Sub-departments a manager (or admin) is responsible for.

        Priority: explicit assignments, then the user's own sub-department,
        then every sub-department of the user's department.
        """
        if not (self.is_manager(user) or self.is_admin(user)):
            return []

        explicit = list(self._users.explicit_managed_sub_department_ids(user.user_id))
        if explicit:
            return explicit
        if user.sub_department_id:
            return [int(user.sub_department_id)]
        if user.department_id:
            return list(self._users.sub_department_ids_of(user.department_id))
        return []

    def manages(self, manager: User, employee: User) -> bool:
        if not (self.is_manager(manager) or self.is_admin(manager)):
            return False

        managed = self.managed_sub_department_ids(manager)
        if managed:
            return employee.sub_department_id in managed
        return manager.department_id is not None and employee.department_id == manager.department_id

    def cover_person_options(self, applicant: User) -> Sequence[User]:
        if self.is_admin(applicant):
            return self._users.list_all_except(applicant.user_id)
        if not applicant.sub_department_id:
            return []
        return self._users.list_peers(
            sub_department_id=applicant.sub_department_id,
            exclude_user_id=applicant.user_id,
        )


@dataclass
class DeactivationResult:
    today: date
    dry_run: bool
    candidates: list[dict] = field(default_factory=list)
    deactivated: int = 0
    errors: int = 0


class EmployeeLifecycleService:
    """Use case: retire accounts whose closing date has passed."""

    def __init__(self, users: UserRepository, tx):
        self._users = users
        self._tx = tx

    def deactivate_separated(self, *, today: date, dry_run: bool = False) -> DeactivationResult:
        result = DeactivationResult(today=today, dry_run=dry_run)

        for user in self._users.list_separated(before=today):
            result.candidates.append(
                {
                    "id": user.user_id,
                    "employee_code": user.employee_code,
                    "name": user.full_name,
                    "email": user.email,
                    "closing_date": user.closing_date.isoformat() if user.closing_date else None,
                }
            )
            if dry_run:
                continue
            try:
                with self._tx.atomic():
                    if self._users.set_active(user.user_id, is_active=False):
                        result.deactivated += 1
            except Exception:
                logger.exception("[Employee Deactivation] Failed to deactivate user_id=%s", user.user_id)
                result.errors += 1

        if not result.candidates:
            logger.info("[Employee Deactivation] No employees to deactivate on %s", today.isoformat())
        else:
            logger.info(
                "[Employee Deactivation] Completed %s",
                {
                    "date": today.isoformat(),
                    "dry_run": dry_run,
                    "count": len(result.candidates),
                    "deactivated": result.deactivated,
                    "employees": result.candidates,
                },
            )
        return result
