from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role used for authorization."""

    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"


class AttendanceStatus(str, Enum):
    """Normalized attendance status stored in the ledger."""

    PRESENT = "present"
    ABSENT = "absent"
    LEAVE = "leave"
    WEEKEND = "weekend"
    HOLIDAY = "holiday"


class LeaveKind(str, Enum):
    ADVANCE = "advance"
    POST = "post"


class LeaveStatus(str, Enum):
    """Leave request lifecycle. Everything except PENDING is terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ApprovalAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class ApproverType(str, Enum):
    COVER_PERSON = "cover_person"
    MANAGER = "manager"
    ADMIN = "admin"


class AccrualType(str, Enum):
    """How a leave balance is filled: by an admin, or from attendance counts."""

    MANUAL = "manual"
    ATTENDANCE = "attendance"
