from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.constants import DEFAULT_WEEKEND_DAYS
from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: an employee account.

    Note: Plain data object, no DB access. ``is_active`` may be ``None`` on
    legacy rows; those count as active.
    """

    user_id: int
    full_name: str
    email: str
    employee_code: Optional[str]
    role: Role
    department_id: Optional[int]
    sub_department_id: Optional[int]
    joining_date: Optional[date]
    closing_date: Optional[date] = None
    weekend_days: tuple[str, ...] = DEFAULT_WEEKEND_DAYS
    is_active: Optional[bool] = True

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_manager(self) -> bool:
        return self.role == Role.MANAGER

    @property
    def is_effectively_active(self) -> bool:
        return self.is_active is None or bool(self.is_active)

    @property
    def label(self) -> str:
        """Name plus employee code, as printed in batch summaries."""
        return f"{self.full_name} ({self.employee_code or self.user_id})"

    def is_weekend(self, day_name: str) -> bool:
        days = self.weekend_days or DEFAULT_WEEKEND_DAYS
        return day_name.lower() in {d.lower() for d in days}

    def is_separated(self, as_of: date) -> bool:
        return self.closing_date is not None and self.closing_date < as_of
