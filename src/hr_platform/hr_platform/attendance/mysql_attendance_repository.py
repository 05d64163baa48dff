from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from ..users.mysql_user_repository import USER_COLUMNS, row_to_user
from .model import AttendanceRecord, OpenAttendance
from .repository import AttendanceRepository


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT attendance_id, user_id, work_date, status, clock_in, clock_out,
                       gross_minutes, break_minutes, net_minutes,
                       is_late, late_minutes, early_exit_minutes, note
                FROM attendance_records
                WHERE user_id=%s AND work_date=%s
                """,
                (int(user_id), work_date),
            )
            r = fetchone(cur)
            if not r:
                return None
            return AttendanceRecord(
                attendance_id=int(r["attendance_id"]),
                user_id=int(r["user_id"]),
                work_date=r["work_date"],
                status=AttendanceStatus(r["status"]),
                clock_in=r.get("clock_in"),
                clock_out=r.get("clock_out"),
                gross_minutes=int(r.get("gross_minutes") or 0),
                break_minutes=int(r.get("break_minutes") or 0),
                net_minutes=int(r.get("net_minutes") or 0),
                is_late=bool(r.get("is_late")),
                late_minutes=int(r.get("late_minutes") or 0),
                early_exit_minutes=int(r.get("early_exit_minutes") or 0),
                note=r.get("note"),
            )

    def create_synthesized(self, *, user_id: int, work_date: date, status: AttendanceStatus) -> bool:
        # uq_attendance_user_date turns a concurrent duplicate into a no-op.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO attendance_records(
                    user_id, work_date, status, clock_in, clock_out,
                    gross_minutes, break_minutes, net_minutes,
                    is_late, late_minutes, early_exit_minutes
                )
                VALUES(%s,%s,%s,NULL,NULL,0,0,0,0,0,0)
                """,
                (int(user_id), work_date, status.value),
            )
            return cur.rowcount > 0

    def count_qualifying_days(self, *, user_id: int, start: date, end: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS days
                FROM attendance_records
                WHERE user_id=%s
                  AND work_date BETWEEN %s AND %s
                  AND status <> %s
                """,
                (int(user_id), start, end, AttendanceStatus.ABSENT.value),
            )
            r = fetchone(cur)
            return int(r["days"]) if r else 0

    def list_open_for_date(self, work_date: date) -> Sequence[OpenAttendance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {USER_COLUMNS}, ar.work_date, ar.clock_in
                FROM attendance_records ar
                JOIN users u ON u.user_id = ar.user_id
                WHERE ar.work_date=%s
                  AND ar.clock_in IS NOT NULL
                  AND ar.clock_out IS NULL
                  AND u.role <> %s
                  AND (u.is_active = 1 OR u.is_active IS NULL)
                ORDER BY u.full_name
                """,
                (work_date, Role.ADMIN.value),
            )
            return [
                OpenAttendance(user=row_to_user(r), work_date=r["work_date"], clock_in=r["clock_in"])
                for r in fetchall(cur)
            ]
