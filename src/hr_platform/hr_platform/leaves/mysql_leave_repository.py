from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from typing import Optional, Sequence

from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import ApprovalStatus, ApproverType, LeaveKind, LeaveStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import ApprovalStep, LeaveRequest, PlannedStep
from .repository import LeaveRepository

REQUEST_COLUMNS = """
    r.request_id, r.user_id, r.leave_type_id, r.kind, r.reason, r.status,
    r.current_approval_step, r.cover_person_id, r.version,
    r.created_at, r.updated_at, lt.code AS leave_type_code
"""


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -------- Writes --------
    def create_request(
        self,
        *,
        user_id: int,
        leave_type_id: int,
        kind: LeaveKind,
        reason: str,
        cover_person_id: Optional[int],
        dates: Sequence[date],
        steps: Sequence[PlannedStep],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(
                    user_id, leave_type_id, kind, reason, status,
                    current_approval_step, cover_person_id, version
                )
                VALUES(%s,%s,%s,%s,%s,1,%s,0)
                """,
                (
                    int(user_id),
                    int(leave_type_id),
                    kind.value,
                    reason,
                    LeaveStatus.PENDING.value,
                    cover_person_id,
                ),
            )
            request_id = int(cur.lastrowid)

            cur.executemany(
                "INSERT INTO leave_dates(request_id, leave_date) VALUES(%s,%s)",
                [(request_id, d) for d in dates],
            )
            cur.executemany(
                """
                INSERT INTO leave_approvals(request_id, step, approver_type, status)
                VALUES(%s,%s,%s,%s)
                """,
                [(request_id, s.step, s.approver_type.value, ApprovalStatus.PENDING.value) for s in steps],
            )
            return request_id

    def record_step_decision(
        self,
        *,
        request_id: int,
        step: int,
        approver_id: int,
        status: ApprovalStatus,
        comment: Optional[str],
        acted_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_approvals
                SET status=%s, approver_id=%s, comment=%s, acted_at=%s
                WHERE request_id=%s AND step=%s AND status=%s
                """,
                (
                    status.value,
                    int(approver_id),
                    comment,
                    acted_at,
                    int(request_id),
                    int(step),
                    ApprovalStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def advance(
        self,
        *,
        request_id: int,
        expected_step: int,
        expected_version: int,
        next_step: int,
        status: LeaveStatus,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET current_approval_step=%s, status=%s, version=version+1, updated_at=NOW()
                WHERE request_id=%s
                  AND status=%s
                  AND current_approval_step=%s
                  AND version=%s
                """,
                (
                    int(next_step),
                    status.value,
                    int(request_id),
                    LeaveStatus.PENDING.value,
                    int(expected_step),
                    int(expected_version),
                ),
            )
            return cur.rowcount > 0

    def cancel(self, *, request_id: int, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, version=version+1, updated_at=NOW()
                WHERE request_id=%s AND user_id=%s AND status=%s
                """,
                (LeaveStatus.CANCELLED.value, int(request_id), int(user_id), LeaveStatus.PENDING.value),
            )
            return cur.rowcount > 0

    # -------- Reads --------
    def get(self, request_id: int) -> Optional[LeaveRequest]:
        return self._get(request_id, for_update=False)

    def get_for_update(self, request_id: int) -> Optional[LeaveRequest]:
        return self._get(request_id, for_update=True)

    def _get(self, request_id: int, *, for_update: bool) -> Optional[LeaveRequest]:
        lock = " FOR UPDATE" if for_update else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {REQUEST_COLUMNS}
                FROM leave_requests r
                JOIN leave_types lt ON lt.leave_type_id = r.leave_type_id
                WHERE r.request_id=%s{lock}
                """,
                (int(request_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return self._hydrate(cur, [r])[0]

    def has_approved_leave_on(self, *, user_id: int, day: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1
                FROM leave_requests r
                JOIN leave_dates d ON d.request_id = r.request_id
                WHERE r.user_id=%s AND r.status=%s AND d.leave_date=%s
                LIMIT 1
                """,
                (int(user_id), LeaveStatus.APPROVED.value, day),
            )
            return fetchone(cur) is not None

    def list_awaiting(
        self,
        *,
        approver_type: ApproverType,
        cover_person_id: Optional[int] = None,
    ) -> Sequence[LeaveRequest]:
        clauses = ["r.status=%s", "a.status=%s", "a.approver_type=%s"]
        params: list[object] = [
            LeaveStatus.PENDING.value,
            ApprovalStatus.PENDING.value,
            approver_type.value,
        ]
        if cover_person_id is not None:
            clauses.append("r.cover_person_id=%s")
            params.append(int(cover_person_id))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {REQUEST_COLUMNS}
                FROM leave_requests r
                JOIN leave_types lt ON lt.leave_type_id = r.leave_type_id
                JOIN leave_approvals a
                  ON a.request_id = r.request_id AND a.step = r.current_approval_step
                WHERE {where}
                ORDER BY r.created_at ASC
                LIMIT %s
                """,
                tuple(params + [DEFAULT_LIST_LIMIT]),
            )
            return self._hydrate(cur, fetchall(cur))

    def list_for_user(self, user_id: int, *, limit: int = DEFAULT_LIST_LIMIT) -> Sequence[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {REQUEST_COLUMNS}
                FROM leave_requests r
                JOIN leave_types lt ON lt.leave_type_id = r.leave_type_id
                WHERE r.user_id=%s
                ORDER BY r.created_at DESC
                LIMIT %s
                """,
                (int(user_id), int(limit)),
            )
            return self._hydrate(cur, fetchall(cur))

    # -------- Helpers --------
    def _hydrate(self, cur, rows: list[dict]) -> list[LeaveRequest]:
        if not rows:
            return []
        ids = [int(r["request_id"]) for r in rows]
        placeholders = in_clause(ids)

        dates: dict[int, list[date]] = defaultdict(list)
        cur.execute(
            f"""
            SELECT request_id, leave_date
            FROM leave_dates
            WHERE request_id IN ({placeholders})
            ORDER BY leave_date
            """,
            tuple(ids),
        )
        for d in fetchall(cur):
            dates[int(d["request_id"])].append(d["leave_date"])

        steps: dict[int, list[ApprovalStep]] = defaultdict(list)
        cur.execute(
            f"""
            SELECT request_id, step, approver_type, status, approver_id, comment, acted_at
            FROM leave_approvals
            WHERE request_id IN ({placeholders})
            ORDER BY step
            """,
            tuple(ids),
        )
        for a in fetchall(cur):
            steps[int(a["request_id"])].append(
                ApprovalStep(
                    request_id=int(a["request_id"]),
                    step=int(a["step"]),
                    approver_type=ApproverType(a["approver_type"]),
                    status=ApprovalStatus(a["status"]),
                    approver_id=a.get("approver_id"),
                    comment=a.get("comment"),
                    acted_at=a.get("acted_at"),
                )
            )

        return [
            LeaveRequest(
                request_id=int(r["request_id"]),
                user_id=int(r["user_id"]),
                leave_type_id=int(r["leave_type_id"]),
                kind=LeaveKind(r["kind"]),
                reason=r["reason"],
                status=LeaveStatus(r["status"]),
                current_approval_step=int(r["current_approval_step"]),
                cover_person_id=r.get("cover_person_id"),
                version=int(r.get("version") or 0),
                dates=tuple(dates[int(r["request_id"])]),
                steps=tuple(steps[int(r["request_id"])]),
                leave_type_code=r.get("leave_type_code"),
                created_at=r.get("created_at"),
                updated_at=r.get("updated_at"),
            )
            for r in rows
        ]
