"""
Shared error handling for the RBAC access service.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class AccessLayerException(Exception):
    """Base exception for access service errors."""

    status_code = 400

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class ValidationError(AccessLayerException):
    """Caller supplied a value outside what the service accepts."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class StoreError(AccessLayerException):
    """Reading or writing the policy medium failed."""

    status_code = 500

    def __init__(self, message: str = "Policy store error", details: Optional[Dict[str, Any]] = None):
        super().__init__("STORE_ERROR", message, details)


class EngineError(AccessLayerException):
    """Enforcement could not be evaluated."""

    status_code = 500

    def __init__(self, message: str = "Enforcement failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("ENGINE_ERROR", message, details)


class NotFoundError(AccessLayerException):
    """A role mutation targets a subject with no assignment in the domain."""

    def __init__(self, message: str = "user does not exist", details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, details)


class PersistenceAfterMutationError(AccessLayerException):
    """
    The in-memory policy was changed but saving it failed.

    Memory may differ from the policy file until the next successful reload.
    """

    status_code = 500

    def __init__(self, message: str = "Policy changed in memory but was not saved",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__("PERSISTENCE_AFTER_MUTATION", message, details)
