from __future__ import annotations


class DomainError(Exception):
    """Base exception for business rule violations.

    Every subclass carries a stable ``kind`` so callers can map failures
    without parsing messages.
    """

    kind = "DomainError"
    default_message = "operation rejected"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    kind = "ValidationError"
    default_message = "invalid input"


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""

    kind = "AuthenticationError"
    default_message = "invalid credentials"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    kind = "AuthorizationError"
    default_message = "forbidden"


class NotFoundError(DomainError):
    kind = "NotFound"
    default_message = "not found"


class ClockError(DomainError):
    """Base for rejected clock-in/clock-out transitions."""


class NoAssignmentsError(ClockError):
    kind = "NoAssignments"
    default_message = "no assigned workplaces"


class OutOfRangeError(ClockError):
    kind = "OutOfRange"
    default_message = "outside workplace radius"


class AlreadyClockedInError(ClockError):
    kind = "AlreadyClockedIn"
    default_message = "already clocked in"


class NotClockedInError(ClockError):
    kind = "NotClockedIn"
    default_message = "not clocked in"


class NoActiveShiftAtWorkplaceError(NotClockedInError):
    kind = "NoActiveShiftAtWorkplace"
    default_message = "no active shift found"
