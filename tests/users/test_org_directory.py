from __future__ import annotations

from datetime import date

from conftest import ADMIN_ID, ALICE_ID, BOB_ID, CAROL_ID, DAVE_ID, MANAGER_ID, OTHER_MANAGER_ID
from hr_platform.users.service import OrgDirectory


def test_managed_sub_departments_priority(users_repo):
    directory = OrgDirectory(users_repo)

    assert directory.managed_sub_department_ids(users_repo.get_by_id(MANAGER_ID)) == [2]
    assert directory.managed_sub_department_ids(users_repo.get_by_id(ADMIN_ID)) == [1]
    assert directory.managed_sub_department_ids(users_repo.get_by_id(OTHER_MANAGER_ID)) == [5]
    assert directory.managed_sub_department_ids(users_repo.get_by_id(ALICE_ID)) == []


def test_manages(users_repo):
    directory = OrgDirectory(users_repo)
    manager = users_repo.get_by_id(MANAGER_ID)

    assert directory.manages(manager, users_repo.get_by_id(ALICE_ID))
    assert not directory.manages(manager, users_repo.get_by_id(CAROL_ID))
    assert not directory.manages(users_repo.get_by_id(BOB_ID), users_repo.get_by_id(ALICE_ID))


def test_cover_person_options(users_repo):
    directory = OrgDirectory(users_repo)

    alice_options = {u.user_id for u in directory.cover_person_options(users_repo.get_by_id(ALICE_ID))}
    admin_options = {u.user_id for u in directory.cover_person_options(users_repo.get_by_id(ADMIN_ID))}
    loner = {u.user_id for u in directory.cover_person_options(users_repo.get_by_id(OTHER_MANAGER_ID))}

    assert alice_options == {MANAGER_ID, BOB_ID, DAVE_ID}
    assert ADMIN_ID not in admin_options and ALICE_ID in admin_options
    assert loner == set()


def test_weekend_and_separation_checks(users_repo):
    bob = users_repo.get_by_id(BOB_ID)
    dave = users_repo.get_by_id(DAVE_ID)

    assert bob.is_weekend("Friday")
    assert not bob.is_weekend("sunday")
    assert dave.is_separated(date(2026, 2, 1))
    assert not dave.is_separated(date(2026, 1, 31))
