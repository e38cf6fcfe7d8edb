# apps/api/serializers/__init__.py
"""
Venue Booking API Serializers
"""

from .event_serializers import (
    EventSerializer,
    EventServiceSerializer,
)

from .catalog_serializers import (
    RoomSerializer,
    RoomSummarySerializer,
    ImageSerializer,
    ImageUploadSerializer,
    ServiceTypeSerializer,
    ServiceSerializer,
    VariationSerializer,
    PricingTierSerializer,
    EventTypeSerializer,
)

from .billing_serializers import (
    InvoiceSerializer,
    InvoiceDetailSerializer,
    InvoiceDetailedSerializer,
    PaymentSerializer,
)

from .account_serializers import (
    ReviewSerializer,
    NotificationSerializer,
)


__all__ = [
    # Events
    'EventSerializer',
    'EventServiceSerializer',

    # Catalog
    'RoomSerializer',
    'RoomSummarySerializer',
    'ImageSerializer',
    'ImageUploadSerializer',
    'ServiceTypeSerializer',
    'ServiceSerializer',
    'VariationSerializer',
    'PricingTierSerializer',
    'EventTypeSerializer',

    # Billing
    'InvoiceSerializer',
    'InvoiceDetailSerializer',
    'InvoiceDetailedSerializer',
    'PaymentSerializer',

    # Accounts
    'ReviewSerializer',
    'NotificationSerializer',
]
