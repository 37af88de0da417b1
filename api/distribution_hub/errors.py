# distribution_hub/errors.py
"""
Error taxonomy shared by services, the facade and the HTTP layer.
"""
from __future__ import annotations
from typing import Optional


class ServiceError(Exception):
    """Base class; `message` is always human readable."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        # filled in by the facade when the error crosses the UI boundary
        self.user_message: Optional[str] = None

    @property
    def kind(self) -> str:
        return type(self).__name__


class ValidationError(ServiceError):
    """Malformed identity, out-of-range field or bad pattern. Never reaches storage."""

    status_code = 422


class NoValidTargets(ValidationError):
    """Bulk operation left with no well-formed ids."""


class ConflictError(ServiceError):
    """SKU or barcode already used by a non-obsolete product."""

    status_code = 409


class NotFoundError(ServiceError):
    status_code = 404


class StoreError(ServiceError):
    """Underlying storage failure, message propagated verbatim."""

    status_code = 503
