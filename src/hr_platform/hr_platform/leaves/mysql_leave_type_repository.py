from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LeaveType
from .repository import LeaveTypeRepository


def _row_to_leave_type(r: dict) -> LeaveType:
    return LeaveType(
        leave_type_id=int(r["leave_type_id"]),
        code=r["code"],
        name=r["name"],
        is_active=bool(r.get("is_active", 1)),
    )


class MySQLLeaveTypeRepository(LeaveTypeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_code(self, code: str) -> Optional[LeaveType]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT leave_type_id, code, name, is_active FROM leave_types WHERE code=%s",
                (code,),
            )
            r = fetchone(cur)
            return _row_to_leave_type(r) if r else None

    def get_by_id(self, leave_type_id: int) -> Optional[LeaveType]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT leave_type_id, code, name, is_active FROM leave_types WHERE leave_type_id=%s",
                (int(leave_type_id),),
            )
            r = fetchone(cur)
            return _row_to_leave_type(r) if r else None

    def list_active(self) -> Sequence[LeaveType]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT leave_type_id, code, name, is_active FROM leave_types WHERE is_active=1 ORDER BY name"
            )
            return [_row_to_leave_type(r) for r in fetchall(cur)]
