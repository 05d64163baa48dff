from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta
from decimal import Decimal

import pytest

from conftest import ALICE_ID, BOB_ID, SICK_ID
from hr_platform.accrual.calculator import accrual_window
from hr_platform.core.enums import AccrualType, AttendanceStatus
from hr_platform.leaves.model import LeaveBalance


def _fill(attendance_repo, user_id, start, count, status=AttendanceStatus.PRESENT):
    for i in range(count):
        attendance_repo.add(user_id, start + timedelta(days=i), status)


def _attendance_balance(balances_repo, user_id=ALICE_ID, threshold=10, **kwargs):
    return balances_repo.seed(
        user_id=user_id,
        leave_type_id=SICK_ID,
        accrual_type=AccrualType.ATTENDANCE,
        attendance_days_threshold=threshold,
        **kwargs,
    )


def test_floor_of_qualifying_days_over_threshold(container, attendance_repo, balances_repo):
    bid = _attendance_balance(balances_repo)
    _fill(attendance_repo, ALICE_ID, date(2026, 1, 1), 23)
    _fill(attendance_repo, ALICE_ID, date(2026, 1, 24), 5, AttendanceStatus.ABSENT)

    result = container.accrual_service.run(today=date(2026, 2, 15))

    assert result.credited == 2
    assert balances_repo.rows[bid]["balance"] == Decimal(2)
    assert balances_repo.rows[bid]["last_accrual_date"] == date(2026, 2, 15)


def test_rerun_does_not_double_credit(container, attendance_repo, balances_repo):
    bid = _attendance_balance(balances_repo)
    _fill(attendance_repo, ALICE_ID, date(2026, 1, 1), 23)

    container.accrual_service.run(today=date(2026, 2, 15))
    again = container.accrual_service.run(today=date(2026, 2, 15))

    assert again.credited == 0
    assert balances_repo.rows[bid]["balance"] == Decimal(2)


def test_joining_date_bounds_the_window(container, users_repo, attendance_repo, balances_repo):
    users_repo.users[ALICE_ID] = replace(users_repo.users[ALICE_ID], joining_date=date(2026, 1, 10))
    bid = _attendance_balance(balances_repo, threshold=20)
    _fill(attendance_repo, ALICE_ID, date(2026, 1, 1), 9)
    _fill(attendance_repo, ALICE_ID, date(2026, 1, 10), 41, AttendanceStatus.WEEKEND)

    container.accrual_service.run(today=date(2026, 3, 1))

    assert balances_repo.rows[bid]["balance"] == Decimal(2)
    assert balances_repo.rows[bid]["last_accrual_date"] == date(2026, 3, 1)


def test_zero_earned_does_not_advance_last_accrual(container, attendance_repo, balances_repo):
    bid = _attendance_balance(balances_repo, last_accrual_date=date(2026, 1, 31))
    _fill(attendance_repo, ALICE_ID, date(2026, 2, 1), 7)

    result = container.accrual_service.run(today=date(2026, 2, 10))

    assert result.credited == 0
    assert balances_repo.rows[bid]["last_accrual_date"] == date(2026, 1, 31)

    _fill(attendance_repo, ALICE_ID, date(2026, 2, 8), 5)
    container.accrual_service.run(today=date(2026, 2, 14))

    assert balances_repo.rows[bid]["balance"] == Decimal(1)


def test_window_starts_the_day_after_last_accrual():
    b = LeaveBalance(
        balance_id=1,
        user_id=ALICE_ID,
        leave_type_id=SICK_ID,
        balance=Decimal(0),
        used=Decimal(0),
        accrual_type=AccrualType.ATTENDANCE,
        attendance_days_threshold=5,
        last_accrual_date=date(2026, 2, 1),
    )

    w = accrual_window(b, date(2025, 6, 1), date(2026, 3, 1))
    assert (w.start, w.end) == (date(2026, 2, 2), date(2026, 3, 1))

    past = accrual_window(replace(b, last_accrual_date=None), date(2025, 6, 1), date(2026, 3, 1), year=2025)
    assert (past.start, past.end) == (date(2025, 6, 1), date(2025, 12, 31))


def test_past_year_run_then_current_year_run(container, attendance_repo, balances_repo):
    bid = _attendance_balance(balances_repo)
    _fill(attendance_repo, ALICE_ID, date(2025, 12, 1), 25)
    _fill(attendance_repo, ALICE_ID, date(2026, 1, 5), 15)

    past = container.accrual_service.run(year=2025, today=date(2026, 2, 15))

    assert past.credited == 2
    assert balances_repo.rows[bid]["balance"] == Decimal(2)
    assert balances_repo.rows[bid]["last_accrual_date"] == date(2025, 12, 31)

    current = container.accrual_service.run(today=date(2026, 2, 15))

    assert current.credited == 1
    assert balances_repo.rows[bid]["balance"] == Decimal(3)
    assert balances_repo.rows[bid]["last_accrual_date"] == date(2026, 2, 15)

    repeat = container.accrual_service.run(year=2025, today=date(2026, 2, 15))

    assert repeat.credited == 0
    assert balances_repo.rows[bid]["balance"] == Decimal(3)

def test_manual_balances_are_skipped(container, attendance_repo, balances_repo):
    bid = balances_repo.seed(user_id=ALICE_ID, leave_type_id=SICK_ID, balance=3)
    _fill(attendance_repo, ALICE_ID, date(2026, 1, 1), 30)

    result = container.accrual_service.run(today=date(2026, 2, 1))

    assert result.processed == 0
    assert balances_repo.rows[bid]["balance"] == Decimal(3)


def test_failure_on_one_balance_is_isolated(container, attendance_repo, balances_repo, monkeypatch):
    alice_bid = _attendance_balance(balances_repo)
    bob_bid = _attendance_balance(balances_repo, user_id=BOB_ID)
    _fill(attendance_repo, ALICE_ID, date(2026, 1, 1), 10)
    _fill(attendance_repo, BOB_ID, date(2026, 1, 1), 10)

    original = attendance_repo.count_qualifying_days

    def flaky(*, user_id, start, end):
        if user_id == ALICE_ID:
            raise RuntimeError("ledger unavailable")
        return original(user_id=user_id, start=start, end=end)

    monkeypatch.setattr(attendance_repo, "count_qualifying_days", flaky)

    result = container.accrual_service.run(today=date(2026, 2, 1))

    assert result.errors == 1
    assert not result.ok
    assert balances_repo.rows[alice_bid]["balance"] == Decimal(0)
    assert balances_repo.rows[bob_bid]["balance"] == Decimal(1)


@pytest.mark.parametrize("user_id, expected", [(ALICE_ID, 1), (None, 2)])
def test_user_filter(container, attendance_repo, balances_repo, user_id, expected):
    _attendance_balance(balances_repo)
    _attendance_balance(balances_repo, user_id=BOB_ID)

    result = container.accrual_service.run(user_id=user_id, today=date(2026, 2, 1))

    assert result.processed == expected
