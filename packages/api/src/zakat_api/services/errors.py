# This project was developed with assistance from AI tools.
"""Casework error taxonomy.

Services raise these before any write; ``main.py`` renders every subclass
as an RFC 7807 body carrying ``error_code`` and the matching HTTP status.
"""


class CaseworkError(Exception):
    """Base class for expected, client-visible failures."""

    error_code = "internal"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnauthenticatedError(CaseworkError):
    error_code = "unauthenticated"
    status_code = 401


class PermissionDeniedError(CaseworkError):
    error_code = "permission-denied"
    status_code = 403


class InvalidArgumentError(CaseworkError):
    error_code = "invalid-argument"
    status_code = 400


class NotFoundError(CaseworkError):
    error_code = "not-found"
    status_code = 404


class FailedPreconditionError(CaseworkError):
    """The request is well-formed but the current state forbids it."""

    error_code = "failed-precondition"
    status_code = 409


class ServiceUnavailableError(CaseworkError):
    error_code = "unavailable"
    status_code = 503


class InvalidTransitionError(FailedPreconditionError):
    """Raised when an application status transition is not allowed."""

    def __init__(self, current, target):
        super().__init__(f"Cannot transition from {_value(current)} to {_value(target)}")
        self.current = current
        self.target = target


def _value(status) -> str:
    return getattr(status, "value", str(status))
