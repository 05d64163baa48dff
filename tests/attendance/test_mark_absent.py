from __future__ import annotations

from datetime import date

import pytest

from conftest import ADMIN_ID, ALICE_ID, BOB_ID, CAROL_ID, DAVE_ID, MANAGER_ID, OTHER_MANAGER_ID
from hr_platform.core.enums import AttendanceStatus

# 2026-03-06 is a Friday, 2026-03-02 a Monday.
FRIDAY = date(2026, 3, 6)
MONDAY = date(2026, 3, 2)


def test_marks_absent_for_everyone_without_a_record(container, attendance_repo):
    result = container.marking_service.mark_absent(MONDAY)

    assert result.ok
    marked = {uid for (uid, day) in attendance_repo.records if day == MONDAY}
    assert marked == {MANAGER_ID, ALICE_ID, BOB_ID, CAROL_ID, DAVE_ID, OTHER_MANAGER_ID}
    assert ADMIN_ID not in marked
    rec = attendance_repo.records[(ALICE_ID, MONDAY)]
    assert rec.status == AttendanceStatus.ABSENT
    assert (rec.clock_in, rec.clock_out, rec.net_minutes) == (None, None, 0)


def test_running_twice_keeps_one_record_per_employee(container, attendance_repo):
    container.marking_service.mark_absent(MONDAY)
    second = container.marking_service.mark_absent(MONDAY)

    assert second.marked_absent == []
    assert len(second.skipped_existing) == 6
    assert len([k for k in attendance_repo.records if k[1] == MONDAY]) == 6


def test_holiday_short_circuits_the_run(container, holidays_repo, attendance_repo):
    holidays_repo.days.add(MONDAY)

    result = container.marking_service.mark_absent(MONDAY)

    assert result.holiday
    assert result.ok
    assert attendance_repo.records == {}


def test_weekend_is_per_employee(container, attendance_repo):
    result = container.marking_service.mark_absent(FRIDAY)

    assert (BOB_ID, FRIDAY) not in attendance_repo.records
    assert attendance_repo.records[(ALICE_ID, FRIDAY)].status == AttendanceStatus.ABSENT
    assert "Bob Developer (EMP004)" in result.skipped_weekend


def test_approved_leave_beats_absence(container, leaves_repo, attendance_repo):
    leaves_repo.add_approved(user_id=ALICE_ID, days=[MONDAY])

    result = container.marking_service.mark_absent(MONDAY)

    assert attendance_repo.records[(ALICE_ID, MONDAY)].status == AttendanceStatus.LEAVE
    assert result.marked_leave == ["Alice Developer (EMP003)"]


def test_existing_record_is_never_overwritten(container, attendance_repo, leaves_repo):
    attendance_repo.add(ALICE_ID, MONDAY, AttendanceStatus.PRESENT)
    leaves_repo.add_approved(user_id=ALICE_ID, days=[MONDAY])

    container.marking_service.mark_absent(MONDAY)

    assert attendance_repo.records[(ALICE_ID, MONDAY)].status == AttendanceStatus.PRESENT


def test_employees_who_have_not_joined_yet_are_ignored(container, attendance_repo):
    container.marking_service.mark_absent(date(2023, 12, 4))

    assert attendance_repo.records == {}


def test_one_failure_does_not_stop_the_batch(container, attendance_repo):
    attendance_repo.fail_user_ids.add(ALICE_ID)

    result = container.marking_service.mark_absent(MONDAY)

    assert not result.ok
    assert result.errors == ["Alice Developer (EMP003)"]
    assert (ALICE_ID, MONDAY) not in attendance_repo.records
    assert (BOB_ID, MONDAY) in attendance_repo.records


@pytest.mark.parametrize("day, expected", [(MONDAY, True), (FRIDAY, True), (date(2026, 3, 7), False)])
def test_default_weekend_skips_saturday(container, attendance_repo, day, expected):
    container.marking_service.mark_absent(day)

    assert ((ALICE_ID, day) in attendance_repo.records) is expected
