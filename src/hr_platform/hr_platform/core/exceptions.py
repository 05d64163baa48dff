class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class StateError(DomainError):
    """Raised when an action does not fit the current state of a record."""


class NoPendingApproval(StateError):
    """Raised when a leave request has no actionable approval step."""


class StaleApprovalError(StateError):
    """Raised when a leave request changed between read and write."""


class InsufficientBalanceError(DomainError):
    """Raised when a leave balance cannot cover the requested days."""
