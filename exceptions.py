"""
Application error hierarchy.

Route handlers and services raise these; the handlers registered in
``main.py`` turn them into ``{"message": ...}`` JSON responses with the
matching status code.

    VacationAppError
    ├── Unauthorized      401
    ├── Forbidden         403
    ├── NotFound          404
    ├── Conflict          409
    └── ValidationError   400
        ├── InvalidScope
        └── QuotaExceeded
"""
from typing import Any, Dict, Optional


class VacationAppError(Exception):
    status_code = 500

    def __init__(self, message: str, *, detail: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}

    def to_dict(self) -> Dict[str, Any]:
        body = {"message": self.message}
        body.update(self.detail)
        return body


class Unauthorized(VacationAppError):
    status_code = 401


class Forbidden(VacationAppError):
    status_code = 403


class NotFound(VacationAppError):
    """Resource is missing or not visible to the caller."""
    status_code = 404


class Conflict(VacationAppError):
    status_code = 409


class ValidationError(VacationAppError):
    status_code = 400


class InvalidScope(ValidationError):
    """Activity capture requested for an activity not scheduled today."""


class QuotaExceeded(ValidationError):
    def __init__(self, remaining: int, message: Optional[str] = None):
        super().__init__(
            message or f"Capture limit exceeded. Only {remaining} photo(s) allowed",
            detail={"remaining": remaining},
        )
        self.remaining = remaining
