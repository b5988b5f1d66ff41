from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """
    Business rule violation raised by services.

    The message is meant to be shown to the operator as-is; the global exception
    handler in refurb_ops.api.main converts it into the standard ErrorResponse envelope.
    """

    status_code = 400
    error_type = "domain_error"

    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(DomainError):
    """Requested entity does not exist."""

    status_code = 404
    error_type = "not_found"


class PermissionDeniedError(DomainError):
    """The current user may not perform this action."""

    status_code = 403
    error_type = "permission_denied"


class ConflictError(DomainError):
    """The action conflicts with existing state (duplicates, locked records)."""

    status_code = 409
    error_type = "conflict"
