# apps/api/views/event_views.py
"""
Event Views

REST API views for event booking and booked services.
"""

import logging

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated

from shared.common.permissions import IsPrivileged
from apps.core.models import Event
from apps.core.services import (
    EventBookingService,
    ServiceBookingService,
    ListingService,
    PermissionDeniedError,
)
from apps.core.services.listing_service import EVENT_INCLUDES
from apps.api.serializers import EventSerializer, EventServiceSerializer, InvoiceDetailedSerializer
from .base import BaseVenueViewSet

logger = logging.getLogger(__name__)


class EventViewSet(BaseVenueViewSet):
    """
    ViewSet for events.

    Customers see and change their own events; staff see all of them
    and drive status changes.
    """

    lookup_value_regex = r'\d+'

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.booking_service = EventBookingService()
        self.listing_service = ListingService()

    def get_permissions(self):
        if self.action in ('toggle_status', 'set_status'):
            return [IsPrivileged()]
        return [IsAuthenticated()]

    # ==========================================================================
    # List and Retrieve
    # ==========================================================================

    def list(self, request):
        """
        List events with filtering, sorting and pagination.

        GET /api/v1/events/
        """
        actor = self.get_actor()
        base_queryset = None
        if actor is not None and not actor.is_privileged:
            base_queryset = Event.objects.filter(account_id=actor.id)

        result = self.listing_service.list_events(request.query_params, base_queryset)
        return self.list_response(result, EventSerializer, self.get_include(EVENT_INCLUDES))

    def retrieve(self, request, pk=None):
        """
        Retrieve an event.

        GET /api/v1/events/{id}/?include=room,services,invoice
        """
        include = self.get_include(EVENT_INCLUDES)
        event = self.booking_service.get_event(int(pk), include=include)
        self._ensure_visible(event)

        serializer = EventSerializer(event, context={'request': request, 'include': include})
        return self.success_response(serializer.data)

    # ==========================================================================
    # Create, Update, Delete
    # ==========================================================================

    def create(self, request):
        """
        Create an event with its booked services and invoice.

        POST /api/v1/events/
        """
        booking = self.booking_service.create_event(request.data, actor=self.get_actor())
        return self.success_response(
            self._booking_data(booking),
            status_code=status.HTTP_201_CREATED
        )

    def update(self, request, pk=None):
        """
        Update an event.

        PUT/PATCH /api/v1/events/{id}/
        """
        booking = self.booking_service.update_event(int(pk), request.data, actor=self.get_actor())
        return self.success_response(self._booking_data(booking))

    def partial_update(self, request, pk=None):
        return self.update(request, pk)

    def destroy(self, request, pk=None):
        """
        Delete an event; ``?force_delete=true`` removes its dependents too.

        DELETE /api/v1/events/{id}/
        """
        result = self.booking_service.delete_event(
            int(pk),
            force=self.get_flag('force_delete'),
            actor=self.get_actor()
        )
        return self.success_response(result)

    # ==========================================================================
    # Status
    # ==========================================================================

    @action(detail=True, methods=['post'], url_path='toggle-status')
    def toggle_status(self, request, pk=None):
        """Flip PENDING <-> CONFIRMED."""
        event = self.booking_service.toggle_status(int(pk))
        return self.success_response(EventSerializer(event).data)

    @action(detail=True, methods=['post'], url_path='set-status')
    def set_status(self, request, pk=None):
        """Move the event to ``{"status": ...}``."""
        event = self.booking_service.set_status(int(pk), request.data.get('status'))
        return self.success_response(EventSerializer(event).data)

    # ==========================================================================
    # Helpers
    # ==========================================================================

    def _ensure_visible(self, event: Event) -> None:
        actor = self.get_actor()
        if actor is not None and not actor.is_privileged and event.account_id != actor.id:
            raise PermissionDeniedError("You can only view your own events.")

    def _booking_data(self, booking) -> dict:
        return {
            'event': EventSerializer(
                booking.event,
                context={'request': self.request, 'include': {'services'}}
            ).data,
            'booked_services_count': booking.booked_services_count,
            'invoice': InvoiceDetailedSerializer(booking.invoice).data if booking.invoice else None,
        }


class EventServiceViewSet(BaseVenueViewSet):
    """ViewSet for services booked on an event."""

    lookup_value_regex = r'\d+'
    permission_classes = [IsAuthenticated]

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.service_booking = ServiceBookingService()

    def retrieve(self, request, pk=None):
        event_service = self.service_booking.get_event_service(int(pk))
        actor = self.get_actor()
        if actor is not None and not actor.is_privileged and event_service.event.account_id != actor.id:
            raise PermissionDeniedError("You can only view services of your own events.")
        return self.success_response(EventServiceSerializer(event_service).data)

    def create(self, request):
        """
        Book a service for an existing event.

        POST /api/v1/event-services/
        """
        event_service = self.service_booking.add_service(request.data, actor=self.get_actor())
        return self.success_response(
            EventServiceSerializer(event_service).data,
            status_code=status.HTTP_201_CREATED
        )

    def update(self, request, pk=None):
        event_service = self.service_booking.update_service(
            int(pk), request.data, actor=self.get_actor()
        )
        return self.success_response(EventServiceSerializer(event_service).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk)

    def destroy(self, request, pk=None):
        result = self.service_booking.remove_service(int(pk), actor=self.get_actor())
        return self.success_response(result)
