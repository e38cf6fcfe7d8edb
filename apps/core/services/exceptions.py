# apps/core/services/exceptions.py
"""
Venue Booking Exceptions

Business outcomes (validation, reference, conflict, dependency, state)
carry structured details for the API layer. ``PersistenceError`` wraps
unexpected database failures behind a generic message.
"""

from typing import Optional, Dict, Any, List


class VenueServiceError(Exception):
    """Base exception for venue booking errors."""

    code = "VENUE_SERVICE_ERROR"

    def __init__(
        self,
        message: str,
        code: str = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code or self.code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to the API error body."""
        error = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            error["details"] = self.details
        return {"success": False, "error": error}


class ValidationFailedError(VenueServiceError):
    """Input failed field-level or cross-field validation."""

    code = "VALIDATION_ERROR"

    def __init__(self, errors: List[str], message: str = None):
        self.errors = list(errors)
        super().__init__(
            message=message or (self.errors[0] if self.errors else "Validation failed"),
            details={"errors": self.errors}
        )


class EntityReferenceError(VenueServiceError):
    """A referenced entity does not exist or cannot be used."""

    code = "REFERENCE_ERROR"

    def __init__(self, message: str, field: str = None):
        super().__init__(message=message, details={"field": field} if field else None)
        self.field = field


class NotFoundError(VenueServiceError):
    """Requested entity does not exist."""

    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(
            message=f"{entity} not found",
            details={"entity": entity, "id": entity_id}
        )


class BookingConflictError(VenueServiceError):
    """Requested window overlaps an existing booking."""

    code = "BOOKING_CONFLICT"

    def __init__(self, message: str, conflicts: List[Dict[str, Any]] = None):
        self.conflicts = conflicts or []
        super().__init__(message=message, details={"conflicts": self.conflicts})


class DependencyError(VenueServiceError):
    """Delete refused because dependent rows exist."""

    code = "DEPENDENCY_ERROR"

    def __init__(self, message: str, counts: Dict[str, Any]):
        self.counts = counts
        super().__init__(message=message, details=counts)


class EventStateError(VenueServiceError):
    """Invalid status transition or operation for the current status."""

    code = "STATE_ERROR"

    def __init__(self, message: str, current_state: str = None, target_state: str = None):
        details = {}
        if current_state:
            details["current_state"] = current_state
        if target_state:
            details["target_state"] = target_state
        super().__init__(message=message, details=details)


class PermissionDeniedError(VenueServiceError):
    """Caller may not perform the operation."""

    code = "PERMISSION_DENIED"


class PersistenceError(VenueServiceError):
    """Unexpected database failure; the transaction was rolled back."""

    code = "INTERNAL_ERROR"

    def __init__(self, message: str = "The operation could not be completed. Please try again later."):
        super().__init__(message=message)


class PaymentGatewayError(VenueServiceError):
    """Payment gateway call failed."""

    code = "PAYMENT_GATEWAY_ERROR"


class StorageError(VenueServiceError):
    """Image storage call failed."""

    code = "STORAGE_ERROR"
