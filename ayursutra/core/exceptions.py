"""Custom application exceptions."""


class AppException(Exception):
    """Base application exception."""

    kind = "error"

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundError(AppException):
    """Referenced entity does not exist."""

    kind = "not_found"

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class ForbiddenException(AppException):
    """Forbidden access exception."""

    kind = "forbidden"

    def __init__(self, message: str = "Forbidden"):
        """Initialize with 403 status code."""
        super().__init__(message, status_code=403)


class ConflictError(AppException):
    """Practitioner already has an active appointment overlapping the requested slot."""

    kind = "conflict"

    def __init__(self, message: str = "Practitioner has a conflicting appointment at this time"):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409)


class InvalidStateTransition(AppException):
    """Operation is not permitted from the entity's current status."""

    kind = "invalid_state_transition"

    def __init__(
        self,
        message: str = "Invalid state transition",
        current: str | None = None,
        target: str | None = None,
    ):
        """Initialize with 409 status code."""
        self.current = current
        self.target = target
        super().__init__(message, status_code=409)


class ValidationError(AppException):
    """Malformed or out-of-range input."""

    kind = "validation_error"

    def __init__(self, message: str = "Validation error"):
        """Initialize with 422 status code."""
        super().__init__(message, status_code=422)


class RateLimitException(AppException):
    """Rate limit exceeded exception."""

    kind = "rate_limited"

    def __init__(self, message: str = "Rate limit exceeded", retry_after: int | None = None):
        """Initialize with 429 status code."""
        self.retry_after = retry_after
        super().__init__(message, status_code=429)
