class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when credentials are missing or invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a referenced course, user, record or session does not exist."""


class ConflictError(DomainError):
    """Raised when a uniqueness violation survives the update retry."""


class InternalError(DomainError):
    """Raised when the store fails unexpectedly during a write."""


class StoreError(Exception):
    """Raised by repositories when the database cannot complete an operation."""


class DuplicateKeyError(StoreError):
    """Raised by repositories when an insert violates a unique key."""
