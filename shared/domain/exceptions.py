"""
Domain Error Taxonomy

Every error raised by the reservation and finance services derives from
DomainError. The first four kinds are recoverable by the caller, who can
retry with corrected input; InternalError means the transaction was rolled
back because persistence failed.
"""

from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base class for errors surfaced by domain services"""

    code = 'domain_error'

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {'detail': self.message, 'code': self.code, **self.details}


class ValidationError(DomainError):
    """Malformed or out-of-range input (negative quantity, checkout before checkin)"""

    code = 'validation_error'


class NotFoundError(DomainError):
    """Reservation, catalog resource, invoice, payment or line item is absent"""

    code = 'not_found'


class ConflictError(DomainError):
    """Capacity exhausted, duplicate invoice issuance, overpayment attempt"""

    code = 'conflict'


class StateError(DomainError):
    """Operation illegal for the current status of an aggregate"""

    code = 'invalid_state'


class InternalError(DomainError):
    """Persistence or transaction failure; nothing was committed"""

    code = 'internal_error'
