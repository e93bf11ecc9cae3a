"""
Domain error taxonomy.

Services raise these instead of HTTP exceptions; ``opportunity_board.main``
renders them as ``{"error": message, **extra}`` with the matching status.
"""

from typing import Any, Dict, Optional


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str, *, extra: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.extra = extra or {}

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.message, **self.extra}


class ValidationError(ServiceError):
    status_code = 400


class UnauthorizedError(ServiceError):
    status_code = 401


class ForbiddenError(ServiceError):
    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409
