# apps/core/services/__init__.py
"""
Venue Booking Business Logic
"""

from .exceptions import (
    VenueServiceError,
    ValidationFailedError,
    EntityReferenceError,
    NotFoundError,
    BookingConflictError,
    DependencyError,
    EventStateError,
    PermissionDeniedError,
    PersistenceError,
    PaymentGatewayError,
    StorageError,
)
from .availability_service import AvailabilityService, AvailabilityResult, BookingWindow
from .cost_calculator import BookedItem, calculate_estimated_cost
from .notification_service import NotificationService
from .invoice_service import InvoiceService
from .event_booking_service import EventBookingService, EventBookingResult
from .service_booking_service import ServiceBookingService
from .listing_service import ListingService
from .catalog_service import CatalogService
from .pricing_tier_service import PricingTierService
from .payment_gateway import StripeGateway, CheckoutSession
from .payment_service import PaymentService
from .storage import ImageStorage
from .image_service import ImageService
from .review_service import ReviewService


__all__ = [
    # Services
    'AvailabilityService',
    'NotificationService',
    'InvoiceService',
    'EventBookingService',
    'ServiceBookingService',
    'ListingService',
    'CatalogService',
    'PricingTierService',
    'PaymentService',
    'ImageService',
    'ReviewService',

    # Collaborators
    'StripeGateway',
    'ImageStorage',

    # Values
    'AvailabilityResult',
    'BookingWindow',
    'BookedItem',
    'CheckoutSession',
    'EventBookingResult',
    'calculate_estimated_cost',

    # Exceptions
    'VenueServiceError',
    'ValidationFailedError',
    'EntityReferenceError',
    'NotFoundError',
    'BookingConflictError',
    'DependencyError',
    'EventStateError',
    'PermissionDeniedError',
    'PersistenceError',
    'PaymentGatewayError',
    'StorageError',
]
