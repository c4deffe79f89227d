"""
Domain Errors

Services raise these; the API layer turns them into JSON responses.
"""
from typing import List, Optional


class DepoError(Exception):
    """Base class for errors surfaced to the user"""
    status_code = 400

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []

    def to_dict(self) -> dict:
        return {"detail": self.message, "errors": self.errors}


class ValidationError(DepoError):
    """Missing or invalid required input; the operation was not attempted"""
    status_code = 422


class NotFoundError(DepoError):
    """Unresolved product / transaction / order id"""
    status_code = 404


class PermissionDeniedError(DepoError):
    """Caller's role flag does not allow the mutation"""
    status_code = 403


class ExternalIOError(DepoError):
    """Unreadable upload or backup payload"""
    status_code = 400


class BatchPartialError(DepoError):
    """
    Row-level failures of a bulk import.

    `applied` is the number of rows that were committed anyway.
    """
    status_code = 422

    def __init__(self, message: str, errors: List[str], applied: int = 0):
        super().__init__(message, errors)
        self.applied = applied

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["applied"] = self.applied
        return data
