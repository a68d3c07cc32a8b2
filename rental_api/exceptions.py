"""
Custom exception classes for the Vehicle Rental API.

Services raise these precise error types; the error handler registered in
`create_app` turns each one into a `{success: false, message}` body with the
matching HTTP status, so "not found", "validation failure" and "authorization
failure" stay distinguishable for callers.
"""


class RentalError(Exception):
    """Base class for every business error the API reports to callers."""

    status_code = 400

    def __init__(self, message: str = "Error: request failed") -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:  # pragma: no cover
        return self.message


class ValidationError(RentalError):
    """Missing or malformed fields, invalid enum values, end-before-start dates."""

    status_code = 400

    def __init__(self, message: str = "Validation failed") -> None:
        super().__init__(message)


class AuthenticationError(RentalError):
    """Missing, invalid or expired token. The caller has to sign in again."""

    status_code = 401

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class AuthorizationError(RentalError):
    """Valid caller without the role or ownership the operation needs."""

    status_code = 403

    def __init__(self, message: str = "You can only access your own data") -> None:
        super().__init__(message)


class NotFoundError(RentalError):
    """Raised when a referenced user, vehicle or booking does not exist."""

    status_code = 404

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message)


class ConflictError(RentalError):
    """Vehicle unavailable, duplicate unique key, or a business rule forbids the change."""

    status_code = 409

    def __init__(self, message: str = "Conflict with current state") -> None:
        super().__init__(message)


class InvalidTransitionError(ConflictError):
    """Raised when a booking status change is not allowed from its current status."""

    def __init__(self, current: str, requested: str, message: str | None = None) -> None:
        self.current = current
        self.requested = requested
        super().__init__(
            message or f"Cannot change booking status from '{current}' to '{requested}'"
        )
