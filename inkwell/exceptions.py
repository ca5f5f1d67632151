"""
Inkwell Backend — Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for the different error scenarios.
How:   Each exception carries a user-facing message and an optional context
       dict. Global handlers registered in main.py turn them into structured
       JSON error responses with the right HTTP status code.
Who:   Raised by services and dependencies; caught by global handlers.

Exception Hierarchy:
    InkwellError (base)
    ├── ValidationError              → 400 Bad Request
    │   └── DuplicateUsernameError   → 400 Bad Request
    ├── InvalidCredentialsError      → 400 Bad Request ("wrong credentials")
    ├── AuthenticationError          → 401 Unauthorized
    │   └── InvalidTokenError        → 401 Unauthorized
    ├── AuthorizationError           → 403 Forbidden
    ├── NotFoundError                → 404 Not Found
    ├── TokenSigningError            → 500 Internal Server Error
    ├── FileStorageError             → 500 Internal Server Error
    └── DatabaseError                → 500 Internal Server Error

The context dict is always logged server-side; validation errors also return
it to the client, since it describes what the client can fix.
"""

from typing import Any, Dict, Optional


class InkwellError(Exception):
    """
    Base exception for all Inkwell application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(InkwellError):
    """
    Raised when client input fails a business rule.

    HTTP: 400 Bad Request. Schema-level problems caught by FastAPI are mapped
    to the same status and error code in main.py.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class DuplicateUsernameError(ValidationError):
    """Raised on registration when the username is already taken."""

    def __init__(self, username: str):
        super().__init__(
            message=f"Username '{username}' is already taken",
            field="username",
        )
        self.username = username


class InvalidCredentialsError(InkwellError):
    """
    Raised when login fails.

    The same message is used whether the username is unknown or the password
    is wrong, so the response cannot be used to enumerate usernames.
    """

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="wrong credentials", context=context)


class AuthenticationError(InkwellError):
    """Raised when a request needs an identity and none was established."""

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidTokenError(AuthenticationError):
    """
    Raised when a session token is missing, malformed, expired, or carries a
    bad signature. Callers must treat the requester as unauthenticated.
    """

    def __init__(
        self,
        message: str = "Session token is missing or invalid",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthorizationError(InkwellError):
    """Raised when an authenticated user tries to mutate a post they did not author."""

    def __init__(
        self,
        message: str = "you are not the author",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(InkwellError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that into this
    exception so routes stay free of status-code logic.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class TokenSigningError(InkwellError):
    """Raised when a session token cannot be signed (e.g. no secret configured)."""

    def __init__(
        self,
        message: str = "Could not create a session. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(InkwellError):
    """
    Raised when storing a cover image fails (disk full, permission denied).

    The client gets a generic message; paths and OS errors are only logged.
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(InkwellError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; constraint names
    and SQL are logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
