from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): services depend on this interface, never on a concrete DB.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def list_attendance_eligible(self, on_date: date) -> Sequence[User]:
        """Non-admin users who joined on/before ``on_date`` and are active (or NULL)."""

        raise NotImplementedError

    def list_admins(self) -> Sequence[User]:
        raise NotImplementedError

    def list_separated(self, *, before: date) -> Sequence[User]:
        """Active users whose closing date is strictly before ``before``."""

        raise NotImplementedError

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError

    def list_peers(self, *, sub_department_id: int, exclude_user_id: int) -> Sequence[User]:
        raise NotImplementedError

    def list_all_except(self, user_id: int) -> Sequence[User]:
        raise NotImplementedError

    def explicit_managed_sub_department_ids(self, user_id: int) -> Sequence[int]:
        raise NotImplementedError

    def sub_department_ids_of(self, department_id: int) -> Sequence[int]:
        raise NotImplementedError
