from __future__ import annotations

import copy
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import pytest

from hr_platform.attendance.model import AttendanceRecord, OpenAttendance
from hr_platform.container import assemble
from hr_platform.core.enums import (
    AccrualType,
    ApprovalStatus,
    ApproverType,
    AttendanceStatus,
    LeaveKind,
    LeaveStatus,
    Role,
)
from hr_platform.leaves.model import ApprovalStep, LeaveBalance, LeaveRequest, LeaveType, PlannedStep
from hr_platform.leaves.policy import LeavePolicy
from hr_platform.main import create_app
from hr_platform.users.model import User


# -------- Fakes --------
class FakeTx:
    """In-memory stand-in for ``DatabaseConnection.atomic()``.

    The outermost block snapshots every registered fake and restores the
    snapshot if the block raises.
    """

    def __init__(self, *stores):
        self._stores = list(stores)
        self._depth = 0
        self.commits = 0
        self.rollbacks = 0

    @contextmanager
    def atomic(self):
        if self._depth:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        snaps = [s.snapshot() for s in self._stores]
        self._depth = 1
        try:
            yield
        except Exception:
            for store, snap in zip(self._stores, snaps):
                store.restore(snap)
            self.rollbacks += 1
            raise
        else:
            self.commits += 1
        finally:
            self._depth = 0


class FakeUsersRepo:
    def __init__(self, users, *, explicit=None, sub_departments=None):
        self.users: dict[int, User] = {u.user_id: u for u in users}
        self.explicit: dict[int, list[int]] = dict(explicit or {})
        self.sub_departments: dict[int, list[int]] = dict(sub_departments or {})

    def snapshot(self):
        return dict(self.users)

    def restore(self, snap):
        self.users = dict(snap)

    def get_by_id(self, user_id):
        return self.users.get(int(user_id))

    def list_attendance_eligible(self, on_date):
        return [
            u
            for u in sorted(self.users.values(), key=lambda u: u.user_id)
            if u.role != Role.ADMIN
            and u.joining_date is not None
            and u.joining_date <= on_date
            and u.is_effectively_active
        ]

    def list_admins(self):
        return [u for u in self.users.values() if u.role == Role.ADMIN]

    def list_separated(self, *, before):
        return [
            u
            for u in sorted(self.users.values(), key=lambda u: u.user_id)
            if u.closing_date is not None and u.closing_date < before and u.is_effectively_active
        ]

    def set_active(self, user_id, *, is_active):
        u = self.users.get(int(user_id))
        if u is None or u.is_active == is_active:
            return False
        self.users[u.user_id] = replace(u, is_active=is_active)
        return True

    def list_peers(self, *, sub_department_id, exclude_user_id):
        return [
            u
            for u in self.users.values()
            if u.sub_department_id == sub_department_id
            and u.user_id != exclude_user_id
            and u.role != Role.ADMIN
            and u.is_effectively_active
        ]

    def list_all_except(self, user_id):
        return [u for u in self.users.values() if u.user_id != user_id and u.is_effectively_active]

    def explicit_managed_sub_department_ids(self, user_id):
        return list(self.explicit.get(int(user_id), []))

    def sub_department_ids_of(self, department_id):
        return list(self.sub_departments.get(int(department_id), []))


class FakeHolidaysRepo:
    def __init__(self, days=()):
        self.days = set(days)

    def exists_on(self, day):
        return day in self.days

    def list_between(self, start, end):
        return sorted(d for d in self.days if start <= d <= end)


class FakeAttendanceRepo:
    def __init__(self, users: FakeUsersRepo):
        self._users = users
        self._next_id = 1
        self.records: dict[tuple[int, date], AttendanceRecord] = {}
        self.fail_user_ids: set[int] = set()

    def snapshot(self):
        return (self._next_id, dict(self.records))

    def restore(self, snap):
        self._next_id, records = snap
        self.records = dict(records)

    def add(self, user_id, day, status=AttendanceStatus.PRESENT, *, clock_in=None, clock_out=None):
        rec = AttendanceRecord(
            attendance_id=self._next_id,
            user_id=user_id,
            work_date=day,
            status=status,
            clock_in=clock_in,
            clock_out=clock_out,
        )
        self._next_id += 1
        self.records[(user_id, day)] = rec
        return rec

    def get_for_user_and_date(self, user_id, work_date):
        return self.records.get((int(user_id), work_date))

    def create_synthesized(self, *, user_id, work_date, status):
        if user_id in self.fail_user_ids:
            raise RuntimeError(f"insert failed for user_id={user_id}")
        if (user_id, work_date) in self.records:
            return False
        self.add(user_id, work_date, status)
        return True

    def count_qualifying_days(self, *, user_id, start, end):
        return sum(
            1
            for (uid, day), rec in self.records.items()
            if uid == user_id and start <= day <= end and rec.status != AttendanceStatus.ABSENT
        )

    def list_open_for_date(self, work_date):
        out = []
        for (uid, day), rec in sorted(self.records.items()):
            if day != work_date or rec.clock_in is None or rec.clock_out is not None:
                continue
            user = self._users.get_by_id(uid)
            if user is None or user.role == Role.ADMIN or not user.is_effectively_active:
                continue
            out.append(OpenAttendance(user=user, work_date=day, clock_in=rec.clock_in))
        return out


class FakeLeaveTypesRepo:
    def __init__(self, types):
        self.types = {t.leave_type_id: t for t in types}

    def get_by_code(self, code):
        return next((t for t in self.types.values() if t.code == code), None)

    def get_by_id(self, leave_type_id):
        return self.types.get(int(leave_type_id))

    def list_active(self):
        return [t for t in self.types.values() if t.is_active]


class FakeLeavesRepo:
    def __init__(self, leave_types: FakeLeaveTypesRepo):
        self._leave_types = leave_types
        self._next_id = 1
        self.requests: dict[int, dict] = {}
        self.steps: dict[int, dict[int, dict]] = {}
        self.dates: dict[int, list[date]] = {}
        self.locked: list[int] = []

    def snapshot(self):
        return copy.deepcopy((self._next_id, self.requests, self.steps, self.dates))

    def restore(self, snap):
        self._next_id, self.requests, self.steps, self.dates = copy.deepcopy(snap)

    def create_request(self, *, user_id, leave_type_id, kind, reason, cover_person_id, dates, steps):
        rid = self._next_id
        self._next_id += 1
        self.requests[rid] = {
            "user_id": user_id,
            "leave_type_id": leave_type_id,
            "kind": kind,
            "reason": reason,
            "status": LeaveStatus.PENDING,
            "current_approval_step": 1,
            "cover_person_id": cover_person_id,
            "version": 0,
            "created_at": datetime(2026, 1, 1, 9, 0),
        }
        self.dates[rid] = list(dates)
        self.steps[rid] = {
            s.step: {
                "approver_type": s.approver_type,
                "status": ApprovalStatus.PENDING,
                "approver_id": None,
                "comment": None,
                "acted_at": None,
            }
            for s in steps
        }
        return rid

    def _build(self, rid) -> Optional[LeaveRequest]:
        r = self.requests.get(int(rid))
        if r is None:
            return None
        leave_type = self._leave_types.get_by_id(r["leave_type_id"])
        return LeaveRequest(
            request_id=int(rid),
            user_id=r["user_id"],
            leave_type_id=r["leave_type_id"],
            kind=r["kind"],
            reason=r["reason"],
            status=r["status"],
            current_approval_step=r["current_approval_step"],
            cover_person_id=r["cover_person_id"],
            version=r["version"],
            dates=tuple(self.dates[int(rid)]),
            steps=tuple(
                ApprovalStep(request_id=int(rid), step=n, **s) for n, s in sorted(self.steps[int(rid)].items())
            ),
            leave_type_code=leave_type.code if leave_type else None,
            created_at=r["created_at"],
        )

    def get(self, request_id):
        return self._build(request_id)

    def get_for_update(self, request_id):
        self.locked.append(int(request_id))
        return self._build(request_id)

    def record_step_decision(self, *, request_id, step, approver_id, status, comment, acted_at):
        s = self.steps.get(int(request_id), {}).get(int(step))
        if s is None or s["status"] != ApprovalStatus.PENDING:
            return False
        s.update(status=status, approver_id=approver_id, comment=comment, acted_at=acted_at)
        return True

    def advance(self, *, request_id, expected_step, expected_version, next_step, status):
        r = self.requests.get(int(request_id))
        if (
            r is None
            or r["status"] != LeaveStatus.PENDING
            or r["current_approval_step"] != expected_step
            or r["version"] != expected_version
        ):
            return False
        r.update(current_approval_step=next_step, status=status, version=r["version"] + 1)
        return True

    def cancel(self, *, request_id, user_id):
        r = self.requests.get(int(request_id))
        if r is None or r["user_id"] != user_id or r["status"] != LeaveStatus.PENDING:
            return False
        r.update(status=LeaveStatus.CANCELLED, version=r["version"] + 1)
        return True

    def has_approved_leave_on(self, *, user_id, day):
        return any(
            r["user_id"] == user_id and r["status"] == LeaveStatus.APPROVED and day in self.dates[rid]
            for rid, r in self.requests.items()
        )

    def list_awaiting(self, *, approver_type, cover_person_id=None):
        out = []
        for rid, r in sorted(self.requests.items()):
            if r["status"] != LeaveStatus.PENDING:
                continue
            s = self.steps[rid].get(r["current_approval_step"])
            if s is None or s["status"] != ApprovalStatus.PENDING or s["approver_type"] != approver_type:
                continue
            if cover_person_id is not None and r["cover_person_id"] != cover_person_id:
                continue
            out.append(self._build(rid))
        return out

    def list_for_user(self, user_id, *, limit=200):
        rows = [self._build(rid) for rid, r in sorted(self.requests.items(), reverse=True) if r["user_id"] == user_id]
        return rows[:limit]

    # test helper
    def add_approved(self, *, user_id, days, leave_type_id=1):
        rid = self.create_request(
            user_id=user_id,
            leave_type_id=leave_type_id,
            kind=LeaveKind.POST,
            reason="Seeded approved leave",
            cover_person_id=None,
            dates=days,
            steps=[PlannedStep(step=1, approver_type=ApproverType.ADMIN)],
        )
        self.requests[rid]["status"] = LeaveStatus.APPROVED
        self.steps[rid][1]["status"] = ApprovalStatus.APPROVED
        return rid


class FakeBalancesRepo:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, dict] = {}

    def snapshot(self):
        return copy.deepcopy((self._next_id, self.rows))

    def restore(self, snap):
        self._next_id, self.rows = copy.deepcopy(snap)

    def seed(
        self,
        *,
        user_id,
        leave_type_id,
        balance=0,
        used=0,
        accrual_type=AccrualType.MANUAL,
        attendance_days_threshold=None,
        last_accrual_date=None,
    ) -> int:
        bid = self._next_id
        self._next_id += 1
        self.rows[bid] = {
            "user_id": user_id,
            "leave_type_id": leave_type_id,
            "balance": Decimal(balance),
            "used": Decimal(used),
            "accrual_type": accrual_type,
            "attendance_days_threshold": attendance_days_threshold,
            "last_accrual_date": last_accrual_date,
        }
        return bid

    def _build(self, bid) -> Optional[LeaveBalance]:
        r = self.rows.get(int(bid))
        return LeaveBalance(balance_id=int(bid), **r) if r else None

    def _find(self, user_id, leave_type_id):
        return next(
            (bid for bid, r in self.rows.items() if r["user_id"] == user_id and r["leave_type_id"] == leave_type_id),
            None,
        )

    def get(self, *, user_id, leave_type_id, for_update=False):
        bid = self._find(user_id, leave_type_id)
        return self._build(bid) if bid else None

    def create_default(self, *, user_id, leave_type_id):
        if self._find(user_id, leave_type_id) is None:
            self.seed(user_id=user_id, leave_type_id=leave_type_id)

    def add_used(self, *, balance_id, days):
        r = self.rows.get(int(balance_id))
        if r is None or r["balance"] - r["used"] < Decimal(days):
            return False
        r["used"] += Decimal(days)
        return True

    def set_balance(self, *, balance_id, balance):
        self.rows[int(balance_id)]["balance"] = Decimal(balance)
        return True

    def save_settings(self, *, balance_id, balance, accrual_type, attendance_days_threshold):
        self.rows[int(balance_id)].update(
            balance=Decimal(balance),
            accrual_type=accrual_type,
            attendance_days_threshold=attendance_days_threshold,
        )
        if accrual_type == AccrualType.ATTENDANCE:
            self.rows[int(balance_id)]["last_accrual_date"] = None
        return True

    def credit_accrual(self, *, balance_id, earned, accrual_date, expected_last_accrual):
        r = self.rows.get(int(balance_id))
        if r is None or r["last_accrual_date"] != expected_last_accrual:
            return False
        r["balance"] += Decimal(earned)
        r["last_accrual_date"] = accrual_date
        return True

    def list_attendance_based(self, *, user_id=None):
        return [
            self._build(bid)
            for bid, r in sorted(self.rows.items())
            if r["accrual_type"] == AccrualType.ATTENDANCE
            and (r["attendance_days_threshold"] or 0) > 0
            and (user_id is None or r["user_id"] == user_id)
        ]


class RecordingNotifier:
    def __init__(self):
        self.sent: list[tuple] = []
        self.fail = False

    def _record(self, *event):
        if self.fail:
            raise ConnectionError("mail server unavailable")
        self.sent.append(event)

    def notify_leave_approved(self, request, employee):
        self._record("leave_approved", request.request_id, employee.user_id)

    def notify_clock_in_missing(self, employee, day):
        self._record("clock_in_missing", employee.user_id, day)

    def notify_clock_out_missing(self, employee, day, clock_in):
        self._record("clock_out_missing", employee.user_id, day)

    def notify_admins_missed_clock_out(self, rows, admins, day):
        self._record("admins_missed_clock_out", [r.user.user_id for r in rows], [a.user_id for a in admins], day)


# -------- Fixtures --------
ADMIN_ID = 1
MANAGER_ID = 2
ALICE_ID = 3
BOB_ID = 4
CAROL_ID = 5
DAVE_ID = 6
OTHER_MANAGER_ID = 7

CASUAL_ID = 1
SICK_ID = 2


def make_user(user_id, name, role=Role.USER, *, department_id=2, sub_department_id=2, **kwargs) -> User:
    kwargs.setdefault("joining_date", date(2024, 1, 1))
    return User(
        user_id=user_id,
        full_name=name,
        email=f"{name.lower().split()[0]}@example.com",
        employee_code=f"EMP{user_id:03d}",
        role=role,
        department_id=department_id,
        sub_department_id=sub_department_id,
        **kwargs,
    )


@pytest.fixture
def users_repo():
    return FakeUsersRepo(
        [
            make_user(ADMIN_ID, "Ada Admin", Role.ADMIN, department_id=1, sub_department_id=1),
            make_user(MANAGER_ID, "Max Manager", Role.MANAGER),
            make_user(ALICE_ID, "Alice Developer"),
            make_user(BOB_ID, "Bob Developer", weekend_days=("friday", "saturday")),
            make_user(CAROL_ID, "Carol Designer", department_id=3, sub_department_id=5),
            make_user(DAVE_ID, "Dave Leaver", closing_date=date(2026, 1, 31)),
            make_user(OTHER_MANAGER_ID, "Olga Manager", Role.MANAGER, department_id=3, sub_department_id=None),
        ],
        explicit={MANAGER_ID: [2]},
        sub_departments={1: [1], 2: [2, 3], 3: [5]},
    )


@pytest.fixture
def holidays_repo():
    return FakeHolidaysRepo()


@pytest.fixture
def attendance_repo(users_repo):
    return FakeAttendanceRepo(users_repo)


@pytest.fixture
def leave_types_repo():
    return FakeLeaveTypesRepo(
        [
            LeaveType(leave_type_id=CASUAL_ID, code="casual", name="Casual Leave"),
            LeaveType(leave_type_id=SICK_ID, code="sick", name="Sick Leave"),
            LeaveType(leave_type_id=3, code="annual", name="Annual Leave"),
            LeaveType(leave_type_id=9, code="retired", name="Retired Leave", is_active=False),
        ]
    )


@pytest.fixture
def leaves_repo(leave_types_repo):
    return FakeLeavesRepo(leave_types_repo)


@pytest.fixture
def balances_repo():
    return FakeBalancesRepo()


@pytest.fixture
def tx(users_repo, attendance_repo, leaves_repo, balances_repo):
    return FakeTx(users_repo, attendance_repo, leaves_repo, balances_repo)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def policy():
    return LeavePolicy()


@pytest.fixture
def container(
    tx,
    users_repo,
    holidays_repo,
    attendance_repo,
    leaves_repo,
    leave_types_repo,
    balances_repo,
    notifier,
    policy,
):
    return assemble(
        tx=tx,
        users_repo=users_repo,
        holidays_repo=holidays_repo,
        attendance_repo=attendance_repo,
        leaves_repo=leaves_repo,
        leave_types_repo=leave_types_repo,
        balances_repo=balances_repo,
        notifier=notifier,
        policy=policy,
    )


@pytest.fixture
def app(container):
    app = create_app(container=container, settings_module="config.testing")
    app.config.update(TESTING=True)
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def cli_runner(app):
    return app.test_cli_runner()
