from abc import ABC
from typing import ClassVar


class UserError(ABC, Exception):
    """Base class for user-related errors.

    The message passed to the constructor is for the server log only.
    Clients always receive `public_message`, which never depends on the
    request, so responses cannot reveal whether a session, token or
    resource existed.
    """

    public_message: ClassVar[str] = "Bad request"


class UnauthorizedError(UserError):
    """Raised when there is no authenticated session."""

    public_message = "Unauthorized"

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class ForbiddenError(UserError):
    """Raised when a mutating request carries no valid CSRF token."""

    public_message = "Forbidden"

    def __init__(self, message: str = "Invalid CSRF token") -> None:
        super().__init__(message)


class NotFoundError(UserError):
    """Raised when a requested resource is not found or is not owned by the caller."""

    public_message = "Not found"

    def __init__(self, message: str = "Document not found") -> None:
        super().__init__(message)


class ValidationError(UserError):
    """Raised when user input fails validation."""

    public_message = "Invalid input"


class ConflictError(UserError):
    """Raised when a document with the same id already exists."""

    public_message = "Conflict"


class PayloadTooLargeError(UserError):
    """Raised when a request body exceeds the configured size limit."""

    public_message = "Payload too large"


class IdentityProviderError(Exception):
    """Raised when the login round-trip with the identity provider fails.

    Not a UserError: the failure is on the provider side (or the callback was
    forged), and the client only learns that the login did not complete.
    """
