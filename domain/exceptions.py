"""Domain Errors

Every failure a use case can report is one of these. The HTTP layer maps
``status_code`` and ``code`` onto the response envelope.
"""
from typing import Any, Dict, Optional


class DomainError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            }
        }


class ValidationError(DomainError):
    """Missing, malformed or illogical input"""
    status_code = 400
    code = "VALIDATION_ERROR"


class AuthenticationError(DomainError):
    """Credentials could not be verified"""
    status_code = 401
    code = "UNAUTHENTICATED"


class AuthorizationError(DomainError):
    """Role, ownership or lead-time policy refused the operation"""
    status_code = 403
    code = "FORBIDDEN"


class NotFoundError(DomainError):
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(DomainError):
    """Operation collides with existing state"""
    status_code = 409
    code = "CONFLICT"

    def __init__(self, message: str, conflicting_reservation_id: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        if conflicting_reservation_id is not None:
            details["conflicting_reservation_id"] = conflicting_reservation_id
        super().__init__(message, details)
        self.conflicting_reservation_id = conflicting_reservation_id


class InternalError(DomainError):
    """Persistence failure or unexpected condition"""
    status_code = 500
    code = "INTERNAL_ERROR"
