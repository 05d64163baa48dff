from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import AccrualType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LeaveBalance
from .repository import LeaveBalanceRepository

BALANCE_COLUMNS = """
    balance_id, user_id, leave_type_id, balance, used,
    accrual_type, attendance_days_threshold, last_accrual_date
"""


def _row_to_balance(r: dict) -> LeaveBalance:
    threshold = r.get("attendance_days_threshold")
    return LeaveBalance(
        balance_id=int(r["balance_id"]),
        user_id=int(r["user_id"]),
        leave_type_id=int(r["leave_type_id"]),
        balance=Decimal(r.get("balance") or 0),
        used=Decimal(r.get("used") or 0),
        accrual_type=AccrualType(r.get("accrual_type") or AccrualType.MANUAL.value),
        attendance_days_threshold=None if threshold is None else int(threshold),
        last_accrual_date=r.get("last_accrual_date"),
    )


class MySQLLeaveBalanceRepository(LeaveBalanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, *, user_id: int, leave_type_id: int, for_update: bool = False) -> Optional[LeaveBalance]:
        lock = " FOR UPDATE" if for_update else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {BALANCE_COLUMNS}
                FROM leave_balances
                WHERE user_id=%s AND leave_type_id=%s{lock}
                """,
                (int(user_id), int(leave_type_id)),
            )
            r = fetchone(cur)
            return _row_to_balance(r) if r else None

    def create_default(self, *, user_id: int, leave_type_id: int) -> None:
        # uq_balance_user_type keeps concurrent get-or-create to a single row.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO leave_balances(user_id, leave_type_id, balance, used, accrual_type)
                VALUES(%s,%s,0,0,%s)
                """,
                (int(user_id), int(leave_type_id), AccrualType.MANUAL.value),
            )

    def add_used(self, *, balance_id: int, days: Decimal) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_balances
                SET used = used + %s
                WHERE balance_id=%s AND balance - used >= %s
                """,
                (Decimal(days), int(balance_id), Decimal(days)),
            )
            return cur.rowcount > 0

    def set_balance(self, *, balance_id: int, balance: Decimal) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE leave_balances SET balance=%s WHERE balance_id=%s",
                (Decimal(balance), int(balance_id)),
            )
            return cur.rowcount > 0

    def save_settings(
        self,
        *,
        balance_id: int,
        balance: Decimal,
        accrual_type: AccrualType,
        attendance_days_threshold: Optional[int],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_balances
                SET balance=%s, accrual_type=%s, attendance_days_threshold=%s,
                    last_accrual_date=IF(%s, NULL, last_accrual_date)
                WHERE balance_id=%s
                """,
                (
                    Decimal(balance),
                    accrual_type.value,
                    attendance_days_threshold,
                    accrual_type == AccrualType.ATTENDANCE,
                    int(balance_id),
                ),
            )
            # MySQL reports 0 rows when nothing changed; the row still exists.
            return True

    def credit_accrual(
        self,
        *,
        balance_id: int,
        earned: int,
        accrual_date: date,
        expected_last_accrual: Optional[date],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_balances
                SET balance = balance + %s, last_accrual_date=%s
                WHERE balance_id=%s AND last_accrual_date <=> %s
                """,
                (int(earned), accrual_date, int(balance_id), expected_last_accrual),
            )
            return cur.rowcount > 0

    def list_attendance_based(self, *, user_id: Optional[int] = None) -> Sequence[LeaveBalance]:
        clauses = ["accrual_type=%s", "attendance_days_threshold > 0"]
        params: list[object] = [AccrualType.ATTENDANCE.value]
        if user_id is not None:
            clauses.append("user_id=%s")
            params.append(int(user_id))

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {BALANCE_COLUMNS} FROM leave_balances WHERE {where} ORDER BY balance_id",
                tuple(params),
            )
            return [_row_to_balance(r) for r in fetchall(cur)]
