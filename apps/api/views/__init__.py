# apps/api/views/__init__.py
"""
Venue Booking API Views

REST API views for events, catalog, billing and accounts.
"""

from .event_views import EventViewSet, EventServiceViewSet
from .catalog_views import (
    RoomViewSet,
    ServiceViewSet,
    VariationViewSet,
    PricingTierViewSet,
    ServiceTypeViewSet,
    EventTypeViewSet,
    ImageViewSet,
)
from .billing_views import InvoiceViewSet, PaymentViewSet
from .account_views import ReviewViewSet, NotificationViewSet

__all__ = [
    'EventViewSet',
    'EventServiceViewSet',
    'RoomViewSet',
    'ServiceViewSet',
    'VariationViewSet',
    'PricingTierViewSet',
    'ServiceTypeViewSet',
    'EventTypeViewSet',
    'ImageViewSet',
    'InvoiceViewSet',
    'PaymentViewSet',
    'ReviewViewSet',
    'NotificationViewSet',
]
