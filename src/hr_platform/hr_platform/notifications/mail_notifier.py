from __future__ import annotations

from datetime import date, datetime
from typing import Sequence

from flask_mail import Mail, Message

from ..attendance.model import OpenAttendance
from ..leaves.model import LeaveRequest
from ..users.model import User
from .notifier import Notifier


class MailNotifier(Notifier):
    """Plain-text e-mail via Flask-Mail. Needs an application context to send."""

    def __init__(self, mail: Mail, *, sender: str | None = None):
        self._mail = mail
        self._sender = sender

    def _send(self, *, subject: str, recipients: list[str], body: str) -> None:
        msg = Message(subject=subject, recipients=recipients, body=body, sender=self._sender)
        self._mail.send(msg)

    def notify_leave_approved(self, request: LeaveRequest, employee: User) -> None:
        days = ", ".join(d.isoformat() for d in request.dates)
        self._send(
            subject="Your leave application has been approved",
            recipients=[employee.email],
            body=f"Hello {employee.full_name},\n\nYour leave for {days} has been approved.\n",
        )

    def notify_clock_in_missing(self, employee: User, day: date) -> None:
        self._send(
            subject=f"Clock-in reminder for {day.isoformat()}",
            recipients=[employee.email],
            body=f"Hello {employee.full_name},\n\nWe have no clock-in from you for {day.isoformat()}.\n",
        )

    def notify_clock_out_missing(self, employee: User, day: date, clock_in: datetime) -> None:
        self._send(
            subject=f"Clock-out reminder for {day.isoformat()}",
            recipients=[employee.email],
            body=(
                f"Hello {employee.full_name},\n\nYou clocked in at {clock_in.strftime('%I:%M %p')} "
                f"on {day.isoformat()} but have not clocked out yet.\n"
            ),
        )

    def notify_admins_missed_clock_out(
        self, rows: Sequence[OpenAttendance], admins: Sequence[User], day: date
    ) -> None:
        lines = [
            f"- {r.user.label}: clocked in at {r.clock_in.strftime('%I:%M %p')}"
            for r in rows
        ]
        self._send(
            subject=f"Missed clock-out report for {day.strftime('%B %d, %Y')}",
            recipients=[a.email for a in admins],
            body="The following employees did not clock out:\n\n" + "\n".join(lines) + "\n",
        )
