from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from ..core.constants import DEFAULT_ADVANCE_LEAVE_TYPE, DEFAULT_POST_LEAVE_TYPE, DEFAULT_WARNING_DAYS
from ..core.enums import ApproverType, LeaveKind

DEFAULT_APPROVAL_STEPS: Mapping[str, tuple[str, ...]] = {
    LeaveKind.ADVANCE.value: (
        ApproverType.COVER_PERSON.value,
        ApproverType.MANAGER.value,
        ApproverType.ADMIN.value,
    ),
    LeaveKind.POST.value: (
        ApproverType.MANAGER.value,
        ApproverType.ADMIN.value,
    ),
}


def _parse_steps(raw: Mapping[str, Any]) -> dict[LeaveKind, tuple[ApproverType, ...]]:
    steps: dict[LeaveKind, tuple[ApproverType, ...]] = {}
    for kind, types in raw.items():
        # Accept both ["a", "b"] and {1: "a", 2: "b"} shapes.
        if isinstance(types, Mapping):
            types = [types[k] for k in sorted(types, key=int)]
        steps[LeaveKind(kind)] = tuple(ApproverType(t) for t in types)
    return steps


@dataclass(frozen=True)
class LeavePolicy:
    """Leave rules that live in settings rather than in code."""

    approval_steps: Mapping[LeaveKind, tuple[ApproverType, ...]] = field(
        default_factory=lambda: _parse_steps(DEFAULT_APPROVAL_STEPS)
    )
    default_advance_leave_type: str = DEFAULT_ADVANCE_LEAVE_TYPE
    default_post_leave_type: str = DEFAULT_POST_LEAVE_TYPE
    warning_days: int = DEFAULT_WARNING_DAYS
    # When True, final approval fails (and rolls back) if the balance cannot cover the days.
    strict_balance: bool = False

    @classmethod
    def from_settings(cls, settings: Any) -> "LeavePolicy":
        return cls(
            approval_steps=_parse_steps(getattr(settings, "LEAVE_APPROVAL_STEPS", DEFAULT_APPROVAL_STEPS)),
            default_advance_leave_type=getattr(settings, "LEAVE_DEFAULT_ADVANCE_TYPE", DEFAULT_ADVANCE_LEAVE_TYPE),
            default_post_leave_type=getattr(settings, "LEAVE_DEFAULT_POST_TYPE", DEFAULT_POST_LEAVE_TYPE),
            warning_days=int(getattr(settings, "LEAVE_WARNING_DAYS", DEFAULT_WARNING_DAYS)),
            strict_balance=bool(getattr(settings, "LEAVE_STRICT_BALANCE", False)),
        )

    def steps_for(self, kind: LeaveKind) -> tuple[ApproverType, ...]:
        return tuple(self.approval_steps.get(kind, ()))

    def default_leave_type(self, kind: LeaveKind) -> str:
        if kind == LeaveKind.ADVANCE:
            return self.default_advance_leave_type
        return self.default_post_leave_type
