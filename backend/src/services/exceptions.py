"""Shared exceptions for service layer operations."""


class NotFoundError(Exception):
    """
    Raised when a resource does not exist or is not owned by the caller.

    The two cases are deliberately indistinguishable so responses never reveal
    whether another user's resource exists.
    """

    def __init__(self, resource: str) -> None:
        self.resource = resource
        super().__init__(f"{resource} not found")


class QuotaExceededError(Exception):
    """Raised when a user is at or over the ceiling for a resource kind."""

    def __init__(self, resource: str, used: int, max_allowed: int, plan: str) -> None:
        self.resource = resource
        self.used = used
        self.max_allowed = max_allowed
        self.plan = plan
        super().__init__(f"{resource} limit reached ({max_allowed} maximum)")


class InvalidInputError(Exception):
    """Raised when a request body is well-formed JSON but semantically invalid."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class InvalidStateError(Exception):
    """
    Raised when an operation is invalid for a resource's current state.

    Used by the deletion workflow when a request is moved out of a terminal
    status (e.g., processing an already processed request).
    """

    def __init__(self, message: str, status: str | None = None) -> None:
        self.status = status
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation would duplicate or contradict existing state."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class InvalidOperationError(Exception):
    """Raised when an operation is not allowed through this path (e.g., revoking the current session)."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class TwoFactorRequiredError(Exception):
    """Raised when a second-factor code is required but was not supplied."""

    def __init__(self) -> None:
        super().__init__("2FA code required")


class TwoFactorNotConfiguredError(Exception):
    """Raised when 2FA is flagged as enabled but no secret is on file."""

    def __init__(self) -> None:
        super().__init__("2FA not configured properly")


class InvalidTwoFactorCodeError(Exception):
    """Raised when a supplied second-factor code does not verify."""

    def __init__(self) -> None:
        super().__init__("Invalid 2FA code")


class InvalidUnsubscribeTokenError(Exception):
    """Raised when an unsubscribe token cannot be decoded to an email address."""

    def __init__(self) -> None:
        super().__init__("Invalid token")
