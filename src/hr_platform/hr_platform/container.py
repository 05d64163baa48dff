from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .accrual.calculator import AccrualCalculator
from .accrual.service import AccrualService
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceMarkingService, AttendanceReminderService
from .database.connection import DBConfig, DatabaseConnection
from .database.mysql_base import TransactionManager
from .holidays.mysql_holiday_repository import MySQLHolidayRepository
from .holidays.repository import HolidayRepository
from .holidays.service import CalendarService
from .leaves.approval_service import ApprovalService
from .leaves.approvers import ApproverRegistry
from .leaves.balance_service import LeaveBalanceService
from .leaves.mysql_balance_repository import MySQLLeaveBalanceRepository
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .leaves.mysql_leave_type_repository import MySQLLeaveTypeRepository
from .leaves.policy import LeavePolicy
from .leaves.repository import LeaveBalanceRepository, LeaveRepository, LeaveTypeRepository
from .leaves.service import LeaveApplicationService
from .notifications.notifier import LoggingNotifier, Notifier
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import EmployeeLifecycleService, OrgDirectory


@dataclass(frozen=True)
class Container:
    tx: TransactionManager
    policy: LeavePolicy
    notifier: Notifier

    users_repo: UserRepository
    holidays_repo: HolidayRepository
    attendance_repo: AttendanceRepository
    leaves_repo: LeaveRepository
    leave_types_repo: LeaveTypeRepository
    balances_repo: LeaveBalanceRepository

    directory: OrgDirectory
    calendar: CalendarService
    lifecycle_service: EmployeeLifecycleService
    leave_service: LeaveApplicationService
    balance_service: LeaveBalanceService
    approval_service: ApprovalService
    accrual_service: AccrualService
    marking_service: AttendanceMarkingService
    reminder_service: AttendanceReminderService


def assemble(
    *,
    tx: TransactionManager,
    users_repo: UserRepository,
    holidays_repo: HolidayRepository,
    attendance_repo: AttendanceRepository,
    leaves_repo: LeaveRepository,
    leave_types_repo: LeaveTypeRepository,
    balances_repo: LeaveBalanceRepository,
    notifier: Optional[Notifier] = None,
    policy: Optional[LeavePolicy] = None,
) -> Container:
    """Wire services over whatever repositories the caller provides."""
    policy = policy or LeavePolicy()
    notifier = notifier or LoggingNotifier()

    directory = OrgDirectory(users_repo)
    calendar = CalendarService(holidays_repo)

    accrual_service = AccrualService(
        balances_repo,
        users_repo,
        AccrualCalculator(attendance_repo, balances_repo),
        tx,
    )
    balance_service = LeaveBalanceService(balances_repo, leave_types_repo, tx, accrual=accrual_service)
    approval_service = ApprovalService(
        leaves_repo,
        users_repo,
        balance_service,
        ApproverRegistry(directory, users_repo),
        notifier,
        tx,
        policy=policy,
    )

    return Container(
        tx=tx,
        policy=policy,
        notifier=notifier,
        users_repo=users_repo,
        holidays_repo=holidays_repo,
        attendance_repo=attendance_repo,
        leaves_repo=leaves_repo,
        leave_types_repo=leave_types_repo,
        balances_repo=balances_repo,
        directory=directory,
        calendar=calendar,
        lifecycle_service=EmployeeLifecycleService(users_repo, tx),
        leave_service=LeaveApplicationService(leaves_repo, leave_types_repo, users_repo, tx, policy=policy),
        balance_service=balance_service,
        approval_service=approval_service,
        accrual_service=accrual_service,
        marking_service=AttendanceMarkingService(attendance_repo, users_repo, leaves_repo, calendar, tx),
        reminder_service=AttendanceReminderService(attendance_repo, users_repo, leaves_repo, calendar, notifier),
    )


def build_container(
    *,
    db_config: dict,
    policy: Optional[LeavePolicy] = None,
    notifier: Optional[Notifier] = None,
) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    return assemble(
        tx=conn,
        users_repo=MySQLUserRepository(conn),
        holidays_repo=MySQLHolidayRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        leaves_repo=MySQLLeaveRepository(conn),
        leave_types_repo=MySQLLeaveTypeRepository(conn),
        balances_repo=MySQLLeaveBalanceRepository(conn),
        notifier=notifier,
        policy=policy,
    )
