"""
Domain failures raised by the service layer.

Every error carries a human-readable message (entity ids and quantities
embedded for diagnosability) plus a ``details`` dict the API layer returns
verbatim next to the message.
"""

from .validation import ConflictError, ValidationError


class PosError(Exception):
    """Base class for service-layer failures."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class NotFoundError(PosError):
    """Referenced entity id does not exist."""


class InactiveEntityError(PosError):
    """Entity exists but is disabled for the requested operation."""


class InsufficientStockError(PosError):
    """Requested decrement exceeds available stock."""


def http_status_for(exc: Exception) -> int:
    """Map a typed failure to the status code the API answers with."""
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, (InactiveEntityError, InsufficientStockError, ConflictError)):
        return 409
    if isinstance(exc, ValidationError):
        return 400
    return 500


def error_body(exc: Exception) -> dict:
    body = {"error": str(exc)}
    details = getattr(exc, "details", None)
    if details:
        body["details"] = details
    return body
