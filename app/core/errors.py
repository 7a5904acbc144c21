"""
Domain errors for the cleanup API.

Services raise these; the exception handlers in app.main turn them into
HTTP responses. Validation and not-found errors carry enough detail for the
caller to fix the input. Storage errors stay opaque.
"""

from typing import Dict, List, Optional


class CleanupAppError(Exception):
    """Base class for every error the API reports to callers."""

    status_code: int = 400

    def __init__(self, message: str, errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []

    def to_dict(self) -> Dict:
        body = {"success": False, "message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationFailed(CleanupAppError):
    """One or more fields failed validation. No side effects happened."""

    status_code = 400

    def __init__(self, errors: List[Dict[str, str]], message: str = "Validation failed"):
        super().__init__(message, errors)


class InvalidStatus(ValidationFailed):
    def __init__(self, value: str, allowed: List[str]):
        super().__init__(
            [{"field": "status", "message": f"'{value}' is not a valid status. Allowed: {', '.join(allowed)}"}],
            message="Invalid status",
        )
        self.value = value


class InvalidDate(ValidationFailed):
    def __init__(self, field: str, value: str):
        super().__init__(
            [{"field": field, "message": f"'{value}' is not a valid date"}],
            message="Invalid date",
        )
        self.value = value


class InvalidTransition(CleanupAppError):
    status_code = 409


class NotFound(CleanupAppError):
    status_code = 404


class Conflict(CleanupAppError):
    status_code = 409


class AuthenticationFailed(CleanupAppError):
    status_code = 401


class PermissionDenied(CleanupAppError):
    status_code = 403


class StorageError(CleanupAppError):
    """Document store failure. Details are logged, never returned."""

    status_code = 503

    def __init__(self, message: str = "The service is temporarily unavailable. Please try again."):
        super().__init__(message)


class StatsUnavailable(StorageError):
    def __init__(self):
        super().__init__("Statistics are temporarily unavailable. Please try again.")
