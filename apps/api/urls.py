# apps/api/urls.py
"""
Venue Booking API URL Configuration
"""

from django.urls import path, include
from rest_framework.routers import DefaultRouter

from apps.api.views import (
    EventViewSet,
    EventServiceViewSet,
    RoomViewSet,
    ServiceViewSet,
    VariationViewSet,
    PricingTierViewSet,
    ServiceTypeViewSet,
    EventTypeViewSet,
    ImageViewSet,
    InvoiceViewSet,
    PaymentViewSet,
    ReviewViewSet,
    NotificationViewSet,
)

app_name = 'api'

router = DefaultRouter()
router.register(r'events', EventViewSet, basename='event')
router.register(r'event-services', EventServiceViewSet, basename='event-service')
router.register(r'rooms', RoomViewSet, basename='room')
router.register(r'services', ServiceViewSet, basename='service')
router.register(r'variations', VariationViewSet, basename='variation')
router.register(r'pricing-tiers', PricingTierViewSet, basename='pricing-tier')
router.register(r'service-types', ServiceTypeViewSet, basename='service-type')
router.register(r'event-types', EventTypeViewSet, basename='event-type')
router.register(r'images', ImageViewSet, basename='image')
router.register(r'invoices', InvoiceViewSet, basename='invoice')
router.register(r'payments', PaymentViewSet, basename='payment')
router.register(r'reviews', ReviewViewSet, basename='review')
router.register(r'notifications', NotificationViewSet, basename='notification')

urlpatterns = [
    path('', include(router.urls)),
]

# =============================================================================
# API Endpoint Summary
# =============================================================================
#
# Events:
#   GET    /api/v1/events/                        - List events
#   POST   /api/v1/events/                        - Book an event
#   GET    /api/v1/events/{id}/                   - Event details (?include=)
#   PUT    /api/v1/events/{id}/                   - Update event
#   PATCH  /api/v1/events/{id}/                   - Partial update
#   DELETE /api/v1/events/{id}/                   - Delete (?force_delete=true)
#   POST   /api/v1/events/{id}/toggle-status/     - PENDING <-> CONFIRMED
#   POST   /api/v1/events/{id}/set-status/        - Move to a status
#
# Event services:
#   POST   /api/v1/event-services/                - Book a service on an event
#   GET    /api/v1/event-services/{id}/           - Booked service details
#   PUT    /api/v1/event-services/{id}/           - Update booked service
#   DELETE /api/v1/event-services/{id}/           - Remove booked service
#
# Rooms:
#   GET    /api/v1/rooms/                         - List rooms
#   POST   /api/v1/rooms/                         - Create room
#   GET    /api/v1/rooms/{id}/                    - Room details
#   PUT    /api/v1/rooms/{id}/                    - Update room
#   DELETE /api/v1/rooms/{id}/                    - Deactivate room
#   POST   /api/v1/rooms/{id}/restore/            - Reactivate room
#   GET    /api/v1/rooms/{id}/availability/       - Check a window
#   GET    /api/v1/rooms/statistics/              - Room statistics
#   POST   /api/v1/rooms/{id}/images/             - Upload image
#
# Services, variations and pricing tiers:
#   GET    /api/v1/services/                      - List services
#   POST   /api/v1/services/{id}/images/          - Upload image
#   GET    /api/v1/variations/                    - List variations
#   POST   /api/v1/variations/{id}/toggle-status/ - Flip active flag
#   GET    /api/v1/pricing-tiers/                 - List pricing tiers
#   GET    /api/v1/pricing-tiers/active/          - Active tiers (?on_date=)
#   GET    /api/v1/pricing-tiers/range/           - Tiers by modifier range
#   POST   /api/v1/pricing-tiers/{id}/toggle-status/ - Flip active flag
#
# Billing:
#   GET    /api/v1/invoices/                      - List invoices
#   GET    /api/v1/invoices/{id}/                 - Invoice with lines
#   GET    /api/v1/invoices/statistics/           - Invoice statistics
#   POST   /api/v1/payments/                      - Start checkout
#   POST   /api/v1/payments/{id}/sync/            - Pull checkout outcome
#   POST   /api/v1/payments/{id}/set-status/      - Override status
#
# Accounts:
#   GET    /api/v1/reviews/                       - List reviews
#   POST   /api/v1/reviews/{id}/verify/           - Verify review
#   GET    /api/v1/notifications/                 - Own notifications
#   POST   /api/v1/notifications/{id}/read/       - Mark read
#   POST   /api/v1/notifications/read-all/        - Mark all read
#
# =============================================================================
