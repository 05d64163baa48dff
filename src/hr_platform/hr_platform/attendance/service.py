from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from ..common.datetime_utils import today_local
from ..database.mysql_base import TransactionManager
from ..holidays.service import CalendarService
from ..leaves.repository import LeaveRepository
from ..notifications.notifier import Notifier, safe_notify
from ..users.repository import UserRepository
from .factory import DailyStatusChain, DailyStatusChainFactory
from .repository import AttendanceRepository
from .strategies.base import MarkOutcome

logger = logging.getLogger(__name__)


@dataclass
class MarkAbsentResult:
    work_date: date
    holiday: bool = False
    skipped_weekend: list[str] = field(default_factory=list)
    skipped_existing: list[str] = field(default_factory=list)
    marked_leave: list[str] = field(default_factory=list)
    marked_absent: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def summary(self) -> dict:
        return {
            "date": self.work_date.isoformat(),
            "weekend_skipped": len(self.skipped_weekend),
            "already_recorded": len(self.skipped_existing),
            "marked_leave": len(self.marked_leave),
            "marked_absent": len(self.marked_absent),
            "errors": len(self.errors),
            "leave_employees": self.marked_leave,
            "absent_employees": self.marked_absent,
        }


class AttendanceMarkingService:
    """Daily batch that fills the ledger for employees with no record.

    Holidays stop the whole run. Otherwise each employee goes through the
    rule chain (weekend, existing record, approved leave, absent) in its own
    transaction, so one failure does not block the rest.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        leaves: LeaveRepository,
        calendar: CalendarService,
        tx: TransactionManager,
        *,
        chain: Optional[DailyStatusChain] = None,
    ):
        self._attendance = attendance
        self._users = users
        self._calendar = calendar
        self._tx = tx
        self._chain = chain or DailyStatusChainFactory().build(attendance=attendance, leaves=leaves)

    def mark_absent(self, work_date: Optional[date] = None) -> MarkAbsentResult:
        work_date = work_date or today_local()
        result = MarkAbsentResult(work_date=work_date)

        if self._calendar.is_holiday(work_date):
            result.holiday = True
            logger.info("[Attendance Scheduler] %s is a holiday. Skipping absent marking.", work_date.isoformat())
            return result

        buckets = {
            MarkOutcome.SKIPPED_WEEKEND: result.skipped_weekend,
            MarkOutcome.SKIPPED_EXISTING: result.skipped_existing,
            MarkOutcome.MARKED_LEAVE: result.marked_leave,
            MarkOutcome.MARKED_ABSENT: result.marked_absent,
        }

        for user in self._users.list_attendance_eligible(work_date):
            try:
                with self._tx.atomic():
                    decision = self._chain.decide(user=user, work_date=work_date)
                    outcome = decision.outcome
                    if decision.status is not None:
                        created = self._attendance.create_synthesized(
                            user_id=user.user_id, work_date=work_date, status=decision.status
                        )
                        if not created:
                            # Someone else wrote the row between the check and the insert.
                            outcome = MarkOutcome.SKIPPED_EXISTING
                buckets[outcome].append(user.label)
            except Exception:
                logger.exception(
                    "[Attendance Scheduler] Failed to mark user_id=%s on %s", user.user_id, work_date.isoformat()
                )
                result.errors.append(user.label)

        logger.info("[Attendance Scheduler] Completed %s", result.summary())
        return result


@dataclass
class ReminderResult:
    work_date: date
    skipped_reason: Optional[str] = None
    sent: int = 0
    failed: int = 0

    @property
    def ok(self) -> bool:
        return self.failed == 0


class AttendanceReminderService:
    """Clock-in / clock-out nudges and the admin missed-clock-out report."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        leaves: LeaveRepository,
        calendar: CalendarService,
        notifier: Notifier,
    ):
        self._attendance = attendance
        self._users = users
        self._leaves = leaves
        self._calendar = calendar
        self._notifier = notifier

    def _holiday(self, work_date: date, result: ReminderResult) -> bool:
        if self._calendar.is_holiday(work_date):
            result.skipped_reason = "holiday"
            logger.info("[Attendance Scheduler] %s is a holiday. No reminders sent.", work_date.isoformat())
            return True
        return False

    def notify_missed_clock_in(self, work_date: Optional[date] = None) -> ReminderResult:
        work_date = work_date or today_local()
        result = ReminderResult(work_date=work_date)
        if self._holiday(work_date, result):
            return result

        for user in self._users.list_attendance_eligible(work_date):
            if self._calendar.is_weekend(user, work_date):
                continue
            if self._leaves.has_approved_leave_on(user_id=user.user_id, day=work_date):
                continue
            record = self._attendance.get_for_user_and_date(user.user_id, work_date)
            if record is not None:
                continue
            if safe_notify(self._notifier.notify_clock_in_missing, user, work_date, label="Clock-In Reminder"):
                result.sent += 1
            else:
                result.failed += 1

        logger.info(
            "[Attendance Scheduler] Clock-in reminders for %s: sent=%s failed=%s",
            work_date.isoformat(),
            result.sent,
            result.failed,
        )
        return result

    def remind_clock_out(self, work_date: Optional[date] = None) -> ReminderResult:
        work_date = work_date or today_local()
        result = ReminderResult(work_date=work_date)
        if self._holiday(work_date, result):
            return result

        for row in self._attendance.list_open_for_date(work_date):
            if safe_notify(
                self._notifier.notify_clock_out_missing,
                row.user,
                work_date,
                row.clock_in,
                label="Clock-Out Reminder",
            ):
                result.sent += 1
            else:
                result.failed += 1

        logger.info(
            "[Attendance Scheduler] Clock-out reminders for %s: sent=%s failed=%s",
            work_date.isoformat(),
            result.sent,
            result.failed,
        )
        return result

    def notify_admins_missed_clock_out(self, work_date: Optional[date] = None) -> ReminderResult:
        work_date = work_date or today_local()
        result = ReminderResult(work_date=work_date)
        if self._holiday(work_date, result):
            return result

        rows = list(self._attendance.list_open_for_date(work_date))
        if not rows:
            result.skipped_reason = "no_missed_clock_out"
            logger.info("[Attendance Scheduler] No missed clock-outs on %s", work_date.isoformat())
            return result

        admins = list(self._users.list_admins())
        if not admins:
            result.skipped_reason = "no_admins"
            logger.warning("[Attendance Scheduler] No admins to receive the missed clock-out report")
            return result

        if safe_notify(
            self._notifier.notify_admins_missed_clock_out,
            rows,
            admins,
            work_date,
            label="Missed Clock-Out",
        ):
            result.sent = 1
        else:
            result.failed = 1
        logger.info(
            "[Attendance Scheduler] Missed clock-out report for %s: employees=%s admins=%s",
            work_date.isoformat(),
            len(rows),
            len(admins),
        )
        return result
