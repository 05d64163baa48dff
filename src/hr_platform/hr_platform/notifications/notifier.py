from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Protocol, Sequence

from ..attendance.model import OpenAttendance
from ..leaves.model import LeaveRequest
from ..users.model import User

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Outbound notifications. Callers treat every method as fire-and-forget."""

    def notify_leave_approved(self, request: LeaveRequest, employee: User) -> None:
        raise NotImplementedError

    def notify_clock_in_missing(self, employee: User, day: date) -> None:
        raise NotImplementedError

    def notify_clock_out_missing(self, employee: User, day: date, clock_in: datetime) -> None:
        raise NotImplementedError

    def notify_admins_missed_clock_out(
        self, rows: Sequence[OpenAttendance], admins: Sequence[User], day: date
    ) -> None:
        raise NotImplementedError


class LoggingNotifier(Notifier):
    """Default notifier: records what would have been sent."""

    def notify_leave_approved(self, request: LeaveRequest, employee: User) -> None:
        logger.info(
            "[Leave Approved] leave_id=%s employee=%s dates=%s",
            request.request_id,
            employee.email,
            [d.isoformat() for d in request.dates],
        )

    def notify_clock_in_missing(self, employee: User, day: date) -> None:
        logger.info("[Clock-In Reminder] %s on %s", employee.email, day.isoformat())

    def notify_clock_out_missing(self, employee: User, day: date, clock_in: datetime) -> None:
        logger.info(
            "[Clock-Out Reminder] %s on %s (clocked in at %s)",
            employee.email,
            day.isoformat(),
            clock_in.strftime("%I:%M %p"),
        )

    def notify_admins_missed_clock_out(
        self, rows: Sequence[OpenAttendance], admins: Sequence[User], day: date
    ) -> None:
        logger.info(
            "[Missed Clock-Out] %s employee(s) on %s reported to %s",
            len(rows),
            day.isoformat(),
            [a.email for a in admins],
        )


def safe_notify(send: Callable[..., None], *args, label: str) -> bool:
    """Run one notification; log and swallow any failure."""
    try:
        send(*args)
        return True
    except Exception:
        logger.exception("[%s] Failed to send notification", label)
        return False
