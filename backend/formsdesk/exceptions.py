"""Exceptions shared by the auth core and the API layer"""
from typing import Any, Dict, Optional


class FormsdeskError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str = "An internal error occurred", status_code: int = 500,
                 payload: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self) -> Dict[str, Any]:
        rv = dict(self.payload or ())
        rv["success"] = False
        rv["error"] = self.message
        return rv


class ConfigurationError(FormsdeskError):
    """Missing signing secret or storage binding. Never recovered from."""

    def __init__(self, message: str = "Server is not configured"):
        super().__init__(message, 500)


class StorageError(FormsdeskError):
    """The backing store could not be reached."""

    def __init__(self, message: str = "Storage unavailable"):
        super().__init__(message, 500)


class InvalidToken(FormsdeskError):
    """Bad signature, malformed token or expired token.

    Internal only: the request authenticator turns it into
    :class:`Unauthenticated` so callers cannot tell the cases apart.
    """

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message, 401)


class Unauthenticated(FormsdeskError):
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, 401)


class Forbidden(FormsdeskError):
    def __init__(self, message: str = "Access denied"):
        super().__init__(message, 403)


class ValidationError(FormsdeskError):
    def __init__(self, message: str):
        super().__init__(message, 400)


class NotFoundError(FormsdeskError):
    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, 404)
