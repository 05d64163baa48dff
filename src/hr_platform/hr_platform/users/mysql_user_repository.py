from __future__ import annotations

import json
from datetime import date
from typing import Optional, Sequence

from ..core.constants import DEFAULT_WEEKEND_DAYS
from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import User
from .repository import UserRepository

USER_COLUMNS = """
    u.user_id, u.full_name, u.email, u.employee_code, u.role,
    u.department_id, u.sub_department_id, u.weekend_days,
    u.joining_date, u.closing_date, u.is_active
"""


def _parse_weekend_days(raw) -> tuple[str, ...]:
    if not raw:
        return DEFAULT_WEEKEND_DAYS
    days = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
    return tuple(str(d).lower() for d in days)


def row_to_user(r: dict) -> User:
    is_active = r.get("is_active")
    return User(
        user_id=int(r["user_id"]),
        full_name=r["full_name"],
        email=r["email"],
        employee_code=r.get("employee_code"),
        role=Role(r["role"]),
        department_id=r.get("department_id"),
        sub_department_id=r.get("sub_department_id"),
        joining_date=r.get("joining_date"),
        closing_date=r.get("closing_date"),
        weekend_days=_parse_weekend_days(r.get("weekend_days")),
        is_active=None if is_active is None else bool(is_active),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {USER_COLUMNS} FROM users u WHERE u.user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return row_to_user(row) if row else None

    def list_attendance_eligible(self, on_date: date) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {USER_COLUMNS}
                FROM users u
                WHERE u.role <> %s
                  AND u.joining_date IS NOT NULL
                  AND u.joining_date <= %s
                  AND (u.is_active = 1 OR u.is_active IS NULL)
                ORDER BY u.user_id
                """,
                (Role.ADMIN.value, on_date),
            )
            return [row_to_user(r) for r in fetchall(cur)]

    def list_admins(self) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {USER_COLUMNS} FROM users u WHERE u.role=%s ORDER BY u.user_id",
                (Role.ADMIN.value,),
            )
            return [row_to_user(r) for r in fetchall(cur)]

    def list_separated(self, *, before: date) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {USER_COLUMNS}
                FROM users u
                WHERE (u.is_active = 1 OR u.is_active IS NULL)
                  AND u.closing_date IS NOT NULL
                  AND u.closing_date < %s
                ORDER BY u.closing_date, u.user_id
                """,
                (before,),
            )
            return [row_to_user(r) for r in fetchall(cur)]

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET is_active=%s WHERE user_id=%s",
                (1 if is_active else 0, int(user_id)),
            )
            return cur.rowcount > 0

    def list_peers(self, *, sub_department_id: int, exclude_user_id: int) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {USER_COLUMNS}
                FROM users u
                WHERE u.sub_department_id=%s AND u.user_id<>%s
                ORDER BY u.full_name
                """,
                (int(sub_department_id), int(exclude_user_id)),
            )
            return [row_to_user(r) for r in fetchall(cur)]

    def list_all_except(self, user_id: int) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {USER_COLUMNS} FROM users u WHERE u.user_id<>%s ORDER BY u.full_name",
                (int(user_id),),
            )
            return [row_to_user(r) for r in fetchall(cur)]

    def explicit_managed_sub_department_ids(self, user_id: int) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT sub_department_id FROM manager_sub_departments WHERE manager_id=%s",
                (int(user_id),),
            )
            return [int(r["sub_department_id"]) for r in fetchall(cur)]

    def sub_department_ids_of(self, department_id: int) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT sub_department_id FROM sub_departments WHERE department_id=%s",
                (int(department_id),),
            )
            return [int(r["sub_department_id"]) for r in fetchall(cur)]
