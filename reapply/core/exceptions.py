"""Custom exceptions for the application."""

from fastapi import HTTPException, status


class ApplicationError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class InputValidationError(ApplicationError):
    """Raised when user input blocks a pipeline transition."""

    def __init__(self, message: str, errors: list[dict] | None = None):
        self.errors = errors or []
        super().__init__(message)


class InvalidTransitionError(ApplicationError):
    """Raised when an operation is not allowed in the current pipeline stage."""

    def __init__(self, stage: str, action: str):
        self.stage = stage
        self.action = action
        super().__init__(f"Cannot {action} while in the '{stage}' stage")


class AuthorizationError(ApplicationError):
    """Raised when an OAuth flow fails and must be abandoned."""

    def __init__(self, detail: str = "Authentication failed"):
        self.detail = detail
        super().__init__(detail)


class CredentialUnavailable(ApplicationError):
    """Raised when no usable credential exists and a redirect was initiated.

    Not a failure: the operation is suspended until the provider calls back.
    """

    def __init__(self, authorization_url: str):
        self.authorization_url = authorization_url
        super().__init__("Mail access authorization required")


class DeliveryError(ApplicationError):
    """Raised when the mail gateway rejects or cannot receive a message."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Mail delivery failed ({status_code}): {detail}")


class PersistenceError(ApplicationError):
    """Raised when a store write fails."""


class CredentialConflictError(PersistenceError):
    """Raised when the stored credential changed since it was last read."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"Stored credential for user {user_id} changed concurrently")


class NotFoundError(ApplicationError):
    """Raised when a record does not exist for the current user."""

    def __init__(self, resource: str, resource_id: int | str):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} {resource_id} not found")


def unauthorized_exception(detail: str = "Not authenticated") -> HTTPException:
    """Return a 401 Unauthorized exception."""
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def not_found_exception(detail: str = "Resource not found") -> HTTPException:
    """Return a 404 Not Found exception."""
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=detail,
    )


def conflict_exception(detail: str) -> HTTPException:
    """Return a 409 Conflict exception."""
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=detail,
    )


def to_http_exception(error: ApplicationError) -> HTTPException:
    """Translate a domain error into the HTTP error returned to the client."""
    if isinstance(error, InputValidationError):
        return HTTPException(
            status_code=422,
            detail={"message": error.message, "errors": error.errors},
        )
    if isinstance(error, InvalidTransitionError):
        return conflict_exception(error.message)
    if isinstance(error, NotFoundError):
        return not_found_exception(error.message)
    if isinstance(error, DeliveryError):
        code = error.status_code if 400 <= error.status_code < 500 else 502
        return HTTPException(status_code=code, detail=error.detail)
    if isinstance(error, AuthorizationError):
        return unauthorized_exception(error.detail)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=error.message,
    )
