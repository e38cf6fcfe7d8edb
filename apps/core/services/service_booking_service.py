# apps/core/services/service_booking_service.py
"""
Service Booking Service

Line items (event services) added to, changed on, or removed from an
existing event. Each change recomputes the event's estimated cost and
re-synchronizes its invoice in the same transaction.
"""

import logging
from decimal import Decimal
from typing import Optional, Dict, Any, Mapping

from django.db import transaction, DatabaseError

from shared.common.validators import Err
from apps.core.models import Event, EventService, Service, Notification
from .availability_service import AvailabilityService, BookingWindow
from .cost_calculator import to_money, calculate_estimated_cost
from .event_booking_service import VARIATION_UNAVAILABLE, booked_item
from .invoice_service import InvoiceService, build_invoice_lines
from .notification_service import NotificationService
from .validation import validate_event_service_data

logger = logging.getLogger(__name__)

CLOSED_EVENT_STATUSES = (Event.Status.CANCELLED, Event.Status.COMPLETED)


class ServiceBookingService:
    """
    Service for event line items.

    Handles:
    - Adding a service to an event
    - Updating and removing line items
    - Event cost/invoice refresh
    """

    def __init__(
        self,
        availability: AvailabilityService = None,
        invoices: InvoiceService = None,
        notifications: NotificationService = None
    ):
        self.availability = availability or AvailabilityService()
        self.invoices = invoices or InvoiceService()
        self.notifications = notifications or NotificationService()

    # ==========================================================================
    # Line item CRUD
    # ==========================================================================

    def add_service(self, data: Mapping, actor=None) -> EventService:
        """Book a service (optionally a variation) for an existing event."""
        from . import ValidationFailedError, PersistenceError

        result = validate_event_service_data(data)
        if isinstance(result, Err):
            raise ValidationFailedError(result.errors)
        cleaned = result.value

        try:
            with transaction.atomic():
                event = self._lock_open_event(cleaned['event_id'], actor)
                service = self._get_service(cleaned['service_id'])
                variation = self._lock_variation(cleaned.get('variation_id'), service)

                event_service = EventService(
                    event=event,
                    service=service,
                    variation=variation,
                    quantity=cleaned['quantity'],
                    custom_price=self._money(cleaned.get('custom_price')),
                    notes=cleaned.get('notes'),
                    status=cleaned.get('status') or EventService.Status.CONFIRMED,
                )
                self._apply_window(
                    event_service, event,
                    cleaned.get('scheduled_time'), cleaned.get('duration_hours'),
                )
                self._ensure_available(event_service)
                event_service.save()

                self.refresh_event_cost(event)

                self.notifications.send(
                    event.account_id,
                    "Service Booked",
                    f"The service '{service.name}' has been booked for your event '{event.name}'.",
                    Notification.Type.CONFIRMATION,
                )
        except DatabaseError as exc:
            logger.exception(
                "Failed to add event service",
                extra={'event_id': cleaned.get('event_id'), 'service_id': cleaned.get('service_id')}
            )
            raise PersistenceError() from exc

        logger.info(f"Added event service {event_service.id} to event {event.id}")
        return event_service

    def update_service(self, event_service_id: int, data: Mapping, actor=None) -> EventService:
        """
        Update a line item; its own booking is excluded from the conflict check.

        A line item stays on its event; moving a service to another event is a
        remove followed by an add.
        """
        from . import ValidationFailedError, PersistenceError

        result = validate_event_service_data(data, partial=True)
        if isinstance(result, Err):
            raise ValidationFailedError(result.errors)
        cleaned = result.value

        try:
            with transaction.atomic():
                event, event_service = self._lock_line_item(event_service_id, actor)

                if cleaned.get('event_id') not in (None, event.id):
                    raise ValidationFailedError(
                        ["event_id cannot be changed; remove the service and add it to the other event"]
                    )

                if 'service_id' in cleaned or 'variation_id' in cleaned:
                    service = self._get_service(cleaned.get('service_id') or event_service.service_id)
                    variation_id = (
                        cleaned['variation_id'] if 'variation_id' in cleaned
                        else event_service.variation_id
                    )
                    event_service.service = service
                    event_service.variation = self._lock_variation(variation_id, service)
                elif event_service.variation_id:
                    self.availability.lock_variations([event_service.variation_id])

                if 'quantity' in cleaned:
                    event_service.quantity = cleaned['quantity']
                if 'custom_price' in cleaned:
                    event_service.custom_price = self._money(cleaned['custom_price'])
                if 'notes' in cleaned:
                    event_service.notes = cleaned['notes']
                if 'status' in cleaned:
                    event_service.status = cleaned['status']

                if 'scheduled_time' in cleaned or 'duration_hours' in cleaned:
                    self._apply_window(
                        event_service, event,
                        cleaned.get('scheduled_time', event_service.scheduled_time),
                        cleaned.get('duration_hours', event_service.duration_hours),
                    )

                self._ensure_available(event_service, exclude_event_service_id=event_service.id)
                event_service.save()

                self.refresh_event_cost(event)
        except DatabaseError as exc:
            logger.exception(
                "Failed to update event service",
                extra={'event_service_id': event_service_id}
            )
            raise PersistenceError() from exc

        logger.info(f"Updated event service {event_service_id}")
        return event_service

    def remove_service(self, event_service_id: int, actor=None) -> Dict[str, Any]:
        from . import PersistenceError

        try:
            with transaction.atomic():
                event, event_service = self._lock_line_item(event_service_id, actor)
                event_service.delete()
                self.refresh_event_cost(event)
        except DatabaseError as exc:
            logger.exception(
                "Failed to remove event service",
                extra={'event_service_id': event_service_id}
            )
            raise PersistenceError() from exc

        logger.info(f"Removed event service {event_service_id} from event {event.id}")
        return {'deleted_event_service_id': event_service_id, 'event_id': event.id}

    def get_event_service(self, event_service_id: int) -> EventService:
        from . import NotFoundError

        event_service = (
            EventService.objects.select_related('event', 'service', 'variation')
            .filter(id=event_service_id)
            .first()
        )
        if event_service is None:
            raise NotFoundError('Event service', event_service_id)
        return event_service

    # ==========================================================================
    # Cost
    # ==========================================================================

    def refresh_event_cost(self, event: Event) -> Decimal:
        """Recompute the event's estimated cost from its line items and sync the invoice."""
        rows = list(
            event.event_services.exclude(status=EventService.Status.CANCELLED)
            .select_related('service', 'variation')
        )
        room = event.room
        duration = event.duration_hours
        cost = calculate_estimated_cost(
            room, duration, [booked_item(row) for row in rows], base_cost=event.base_cost
        )

        if cost != event.estimated_cost:
            event.estimated_cost = cost
            event.save(update_fields=['estimated_cost', 'updated_at'])

        self.invoices.sync_for_event(
            event,
            build_invoice_lines(room, duration, rows, event.base_cost),
            cost,
        )
        return cost

    # ==========================================================================
    # Helpers
    # ==========================================================================

    def _lock_open_event(self, event_id: int, actor) -> Event:
        from . import EntityReferenceError, PermissionDeniedError

        event = (
            Event.objects.select_for_update()
            .exclude(status__in=CLOSED_EVENT_STATUSES)
            .filter(id=event_id)
            .first()
        )
        if event is None:
            raise EntityReferenceError("Event not found or cancelled", field='event_id')
        if actor is not None and not actor.is_privileged and event.account_id != actor.id:
            raise PermissionDeniedError("You can only change services of your own events.")
        return event

    def _lock_line_item(self, event_service_id: int, actor):
        """Lock the owning event, then the line item itself."""
        from . import NotFoundError

        event_id = (
            EventService.objects.filter(id=event_service_id)
            .values_list('event_id', flat=True)
            .first()
        )
        if event_id is None:
            raise NotFoundError('Event service', event_service_id)

        event = self._lock_open_event(event_id, actor)
        event_service = (
            EventService.objects.select_for_update()
            .select_related('service', 'variation')
            .filter(id=event_service_id, event_id=event.id)
            .first()
        )
        if event_service is None:
            raise NotFoundError('Event service', event_service_id)
        return event, event_service

    def _get_service(self, service_id: int) -> Service:
        from . import EntityReferenceError

        service = Service.objects.filter(id=service_id, is_active=True).first()
        if service is None:
            raise EntityReferenceError("Service not found or inactive", field='service_id')
        return service

    def _lock_variation(self, variation_id: Optional[int], service: Service):
        from . import EntityReferenceError

        if not variation_id:
            return None
        variation = self.availability.lock_variations([variation_id]).get(variation_id)
        if variation is None or not variation.is_active or variation.service_id != service.id:
            raise EntityReferenceError(VARIATION_UNAVAILABLE, field='variation_id')
        return variation

    def _apply_window(self, event_service: EventService, event: Event, scheduled_time, duration_hours) -> None:
        """Line item window: its own values, else the variation's duration, else the event's."""
        start = scheduled_time or event.start_time
        hours = duration_hours
        if hours is None and event_service.variation is not None:
            hours = event_service.variation.duration_hours
        if hours is None:
            hours = event.duration_hours

        event_service.scheduled_time = start
        event_service.duration_hours = to_money(hours) if hours else None

    def _ensure_available(self, event_service: EventService, exclude_event_service_id: int = None) -> None:
        from . import BookingConflictError

        if (
            event_service.status != EventService.Status.CONFIRMED
            or event_service.variation is None
            or not event_service.scheduled_time
            or not event_service.duration_hours
        ):
            return

        window = BookingWindow.build(
            event_service.scheduled_time,
            duration_hours=event_service.duration_hours,
        )
        result = self.availability.check_variation_availability(
            event_service.variation.id,
            window.start,
            end=window.end,
            exclude_event_service_id=exclude_event_service_id,
            variation=event_service.variation,
        )
        if not result.available:
            logger.warning(
                f"Variation {event_service.variation.id} unavailable: {result.reason}",
                extra={'event_id': event_service.event_id}
            )
            raise BookingConflictError(result.reason, result.conflicts)

    @staticmethod
    def _money(value) -> Optional[Decimal]:
        return to_money(value) if value is not None else None
