"""
Centralized exception hierarchy for domain-specific errors.

Every exception carries a human-readable ``message`` plus a ``details``
mapping with the structured data a client needs to react without a
follow-up query (field errors, quota numbers, ...). ``core.api.api_route``
turns them into HTTP responses.
"""


class SupervitecError(Exception):
    """Base exception for all application-specific errors."""

    code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(SupervitecError):
    """Exception raised when submitted data fails validation."""

    code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        errors: dict[str, str] | None = None,
        details: dict | None = None,
    ) -> None:
        self.errors = dict(errors or {})
        merged = dict(details or {})
        if self.errors:
            merged["errors"] = self.errors
        super().__init__(message, merged)


class AuthenticationError(SupervitecError):
    """Exception raised when the caller identity is missing or malformed."""

    code = "AUTHENTICATION_REQUIRED"


class AuthorizationError(SupervitecError):
    """Exception raised when the caller may not perform the operation."""

    code = "USER_NOT_AUTHORIZED"


class ResourceNotFoundError(SupervitecError):
    """Exception raised when a requested resource is not found."""

    code = "NOT_FOUND"


class DuplicateResourceError(SupervitecError):
    """Exception raised when attempting to create a duplicate resource."""

    code = "DUPLICATE_RESOURCE"


class RateLimitError(SupervitecError):
    """Exception raised when a usage ceiling is reached."""

    code = "RATE_LIMITED"


class QuotaExceededError(RateLimitError):
    """Daily movement ceiling reached for an owner."""

    code = "DAILY_LIMIT_EXCEEDED"

    def __init__(self, count: int, limit: int, day: str | None = None) -> None:
        self.count = count
        self.limit = limit
        self.day = day
        details: dict = {"count": count, "limit": limit}
        if day:
            details["day"] = day
        super().__init__(f"Daily limit of {limit} movements reached", details)


class PersistenceError(SupervitecError):
    """Exception raised when the database fails during a write or count."""

    code = "PERSISTENCE_ERROR"
