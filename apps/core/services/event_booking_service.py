# apps/core/services/event_booking_service.py
"""
Event Booking Service

Create/update workflow for events:

    validate input -> resolve references -> check availability
        -> compute cost -> persist (event, line items, invoice)

Everything after input validation runs in one transaction. The room row
and every booked variation row are locked (``SELECT ... FOR UPDATE``,
rooms before variations, ascending ids) before availability is checked,
so two requests for the same resource cannot both pass the check.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional, Dict, Any, List, Mapping

from django.conf import settings
from django.db import transaction, DatabaseError
from django.utils import timezone

from shared.common.validators import Err, validate_enum
from apps.core.models import (
    Account,
    Event,
    EventService,
    EventType,
    Invoice,
    Payment,
    Review,
    Room,
    Service,
    Variation,
    Notification,
)
from .availability_service import AvailabilityService, BookingWindow
from .cost_calculator import BookedItem, ZERO, to_money, calculate_estimated_cost
from .exceptions import (
    ValidationFailedError,
    EntityReferenceError,
    NotFoundError,
    BookingConflictError,
    DependencyError,
    EventStateError,
    PermissionDeniedError,
    PersistenceError,
)
from .invoice_service import InvoiceService, build_invoice_lines
from .notification_service import NotificationService
from .validation import validate_event_data

logger = logging.getLogger(__name__)

ROOM_UNAVAILABLE = "Room not found, inactive, or unavailable"
VARIATION_UNAVAILABLE = (
    "Variation not found, inactive, or does not belong to the specified service"
)


@dataclass
class RequestedItem:
    """A booked service variation resolved against the catalogue."""
    service: Service
    variation: Optional[Variation]
    quantity: int = 1
    custom_price: Optional[Decimal] = None
    scheduled_time: Optional[datetime] = None
    duration_hours: Optional[Decimal] = None
    notes: Optional[str] = None

    @property
    def unit_price(self) -> Decimal:
        if self.custom_price is not None:
            return self.custom_price
        if self.variation is not None:
            return self.variation.base_price
        return ZERO


@dataclass
class EventBookingResult:
    """Persisted event plus what was booked with it."""
    event: Event
    booked_services_count: int
    invoice: Optional[Invoice] = None


def booked_item(item) -> BookedItem:
    """Pricing view of a requested item or a stored EventService row."""
    return BookedItem(
        variation_price=item.variation.base_price if item.variation is not None else None,
        quantity=item.quantity,
        custom_price=item.custom_price,
    )


class EventBookingService:
    """
    Service for booking events.

    Handles:
    - Event create/update with availability and cost
    - Event retrieval and deletion
    - Status toggle and transitions
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
    # Create
    # ==========================================================================

    def create_event(self, data: Mapping, actor=None) -> EventBookingResult:
        """
        Create an event with its booked services and invoice.

        Args:
            data: Request payload
            actor: Authenticated caller (``id``, ``is_privileged``); None for
                internal calls

        Returns:
            EventBookingResult with the event and the number of booked services
        """
        result = validate_event_data(data)
        if isinstance(result, Err):
            raise ValidationFailedError(result.errors)
        cleaned = result.value

        account_id = cleaned.get('account_id')
        if actor is not None and not actor.is_privileged:
            if account_id and account_id != actor.id:
                raise PermissionDeniedError("You can only create events for your own account.")
            account_id = actor.id
        elif actor is not None and not account_id:
            account_id = actor.id

        status = cleaned.get('status') or Event.Status.PENDING
        if status not in (Event.Status.PENDING, Event.Status.CONFIRMED):
            raise EventStateError(
                "New events must be PENDING or CONFIRMED",
                target_state=status
            )
        if status == Event.Status.CONFIRMED and actor is not None and not actor.is_privileged:
            raise PermissionDeniedError("Only staff can confirm events.")

        try:
            with transaction.atomic():
                booking = self._create(cleaned, account_id, status)
        except DatabaseError as exc:
            logger.exception(
                "Failed to persist event",
                extra={'room_id': cleaned.get('room_id'), 'account_id': account_id}
            )
            raise PersistenceError() from exc

        logger.info(
            f"Created event {booking.event.id} in room {booking.event.room_id}",
            extra={
                'estimated_cost': str(booking.event.estimated_cost),
                'booked_services': booking.booked_services_count,
            }
        )
        return booking

    def _create(self, cleaned: Dict[str, Any], account_id: Optional[int], status: str) -> EventBookingResult:
        room = self._lock_bookable_room(cleaned['room_id'])
        account = self._get_account(account_id)
        event_type = self._get_event_type(cleaned.get('event_type_id'))
        items = self._resolve_items(cleaned.get('service_variants') or [])

        start, end = cleaned.get('start_time'), cleaned.get('end_time')
        duration = self._duration_hours(start, end)

        if start and end:
            self._ensure_room_free(room, start, end)

        windows = self._item_windows(items, start, duration)
        self._ensure_variations_free(items, windows)

        base_cost = to_money(cleaned.get('estimated_cost') or ZERO)
        cost = calculate_estimated_cost(
            room, duration, [booked_item(i) for i in items], base_cost=base_cost
        )

        event = Event.objects.create(
            name=cleaned['name'],
            description=cleaned.get('description'),
            event_date=cleaned.get('event_date') or timezone.localdate(start),
            start_time=start,
            end_time=end,
            base_cost=base_cost,
            estimated_cost=cost,
            final_cost=cleaned.get('final_cost'),
            room_service_fee=cleaned.get('room_service_fee'),
            status=status,
            account=account,
            room=room,
            event_type=event_type,
        )
        self._create_event_services(event, items, windows)

        invoice = self.invoices.sync_for_event(
            event,
            build_invoice_lines(room, duration, items, base_cost),
            cost,
        )

        if status == Event.Status.CONFIRMED:
            self._notify_approved(event)

        return EventBookingResult(event=event, booked_services_count=len(items), invoice=invoice)

    # ==========================================================================
    # Update
    # ==========================================================================

    def update_event(self, event_id: int, data: Mapping, actor=None) -> EventBookingResult:
        """
        Update an event; availability is re-checked excluding the event itself.

        Line items are replaced when ``service_variants`` is given or the
        event window moves; the invoice follows the recomputed cost.
        """
        result = validate_event_data(data, partial=True)
        if isinstance(result, Err):
            raise ValidationFailedError(result.errors)
        cleaned = result.value

        try:
            with transaction.atomic():
                booking = self._update(event_id, cleaned, actor)
        except DatabaseError as exc:
            logger.exception(
                "Failed to update event",
                extra={'event_id': event_id, 'room_id': cleaned.get('room_id')}
            )
            raise PersistenceError() from exc

        logger.info(
            f"Updated event {event_id}",
            extra={'estimated_cost': str(booking.event.estimated_cost)}
        )
        return booking

    def _update(self, event_id: int, cleaned: Dict[str, Any], actor) -> EventBookingResult:
        event = self._lock_event(event_id)
        self._ensure_can_update(event, actor)

        previous_status = event.status
        old_start, old_end = event.start_time, event.end_time
        old_cost = event.estimated_cost

        # Room
        room_id = cleaned.get('room_id', event.room_id) or event.room_id
        room_changed = room_id != event.room_id
        if room_changed:
            room = self._lock_bookable_room(room_id)
        else:
            room = self.availability.lock_rooms([room_id]).get(room_id) if room_id else None

        # Owner and type
        if 'account_id' in cleaned and cleaned['account_id'] != event.account_id:
            if actor is not None and not actor.is_privileged:
                raise PermissionDeniedError("You cannot transfer an event to another account.")
            event.account = self._get_account(cleaned['account_id'])
        if 'event_type_id' in cleaned:
            event.event_type = self._get_event_type(cleaned['event_type_id'])

        # Window
        start = cleaned['start_time'] if 'start_time' in cleaned else old_start
        end = cleaned['end_time'] if 'end_time' in cleaned else old_end
        if bool(start) != bool(end):
            raise ValidationFailedError(["start_time and end_time must be provided together"])
        if start and end and end <= start:
            raise ValidationFailedError(["End time must be after start time"])
        times_changed = start != old_start or end != old_end
        duration = self._duration_hours(start, end)

        # Status
        target_status = cleaned.get('status') or event.status
        if target_status != event.status:
            if actor is not None and not actor.is_privileged and target_status != Event.Status.CANCELLED:
                raise PermissionDeniedError("Only staff can change event status.")
            self._ensure_transition(event, target_status)

        entering_blocking = (
            target_status in Event.get_blocking_statuses()
            and previous_status not in Event.get_blocking_statuses()
        )
        if room is not None and start and end and (room_changed or times_changed or entering_blocking):
            self._ensure_room_free(room, start, end, exclude_event_id=event.id)

        # Line items
        if 'service_variants' in cleaned:
            items = self._resolve_items(cleaned['service_variants'])
        elif times_changed:
            items = self._items_from_rows(event, old_start)
        else:
            items = None

        if items is not None:
            windows = self._item_windows(items, start, duration)
            self._ensure_variations_free(items, windows, exclude_event_id=event.id)
            event.event_services.all().delete()
            self._create_event_services(event, items, windows)
            priced = items
        else:
            priced = list(
                event.event_services.exclude(status=EventService.Status.CANCELLED)
                .select_related('service', 'variation')
            )

        # Cost
        base_cost = (
            to_money(cleaned['estimated_cost'] or ZERO)
            if 'estimated_cost' in cleaned else event.base_cost
        )
        cost = calculate_estimated_cost(
            room, duration, [booked_item(i) for i in priced], base_cost=base_cost
        )

        # Event row
        for field in ('name', 'description', 'final_cost', 'room_service_fee'):
            if field in cleaned:
                setattr(event, field, cleaned[field])
        if cleaned.get('event_date'):
            event.event_date = cleaned['event_date']
        elif times_changed and start:
            event.event_date = timezone.localdate(start)
        event.start_time = start
        event.end_time = end
        event.room = room
        event.base_cost = base_cost
        event.estimated_cost = cost
        event.status = target_status
        event.save()

        invoice = Invoice.objects.filter(event=event).first()
        if cost != old_cost or items is not None or room_changed or invoice is None:
            invoice = self.invoices.sync_for_event(
                event,
                build_invoice_lines(room, duration, priced, base_cost),
                cost,
            )

        self._after_status_change(event, previous_status)

        return EventBookingResult(
            event=event,
            booked_services_count=len(priced),
            invoice=invoice,
        )

    def _ensure_can_update(self, event: Event, actor) -> None:
        if event.status in (Event.Status.COMPLETED, Event.Status.CANCELLED):
            raise EventStateError(
                f"Cannot update an event that is {event.status.lower()}",
                current_state=event.status
            )
        if actor is None or actor.is_privileged:
            return
        if event.account_id != actor.id:
            raise PermissionDeniedError("You can only update your own events.")
        lock_hours = settings.VENUE_BOOKING['UPDATE_LOCK_HOURS']
        if event.hours_until_start < lock_hours:
            raise PermissionDeniedError(
                f"You can only update events at least {lock_hours} hours in advance."
            )

    # ==========================================================================
    # Read / delete
    # ==========================================================================

    def get_event(self, event_id: int, include: Optional[List[str]] = None) -> Event:
        """Get an event, eager-loading the requested relations."""
        include = set(include or [])
        queryset = Event.objects.all()

        related = [name for name in ('room', 'account', 'event_type') if name in include]
        if 'invoice' in include:
            related.append('invoice')
        if related:
            queryset = queryset.select_related(*related)
        if 'services' in include:
            queryset = queryset.prefetch_related(
                'event_services__service', 'event_services__variation'
            )
        if 'invoice' in include:
            queryset = queryset.prefetch_related('invoice__details')

        event = queryset.filter(id=event_id).first()
        if event is None:
            raise NotFoundError('Event', event_id)
        return event

    def delete_event(self, event_id: int, force: bool = False, actor=None) -> Dict[str, Any]:
        """
        Delete an event.

        Without ``force`` the delete is refused while line items, payments,
        reviews or an invoice exist; with it they are removed first.
        """
        if force and actor is not None and not actor.is_privileged:
            raise PermissionDeniedError("Only staff can force delete events.")

        try:
            with transaction.atomic():
                event = self._lock_event(event_id)
                if actor is not None and not actor.is_privileged and event.account_id != actor.id:
                    raise PermissionDeniedError("You can only delete your own events.")

                counts = {
                    'event_services_count': EventService.objects.filter(event=event).count(),
                    'payments_count': Payment.objects.filter(event=event).count(),
                    'reviews_count': Review.objects.filter(event=event).count(),
                    'has_invoice': Invoice.objects.filter(event=event).exists(),
                }
                has_dependencies = (
                    counts['event_services_count'] or counts['payments_count']
                    or counts['reviews_count'] or counts['has_invoice']
                )

                if has_dependencies and not force:
                    logger.warning(
                        f"Refused to delete event {event_id} with dependencies",
                        extra=counts
                    )
                    raise DependencyError(
                        "Cannot delete event. It has "
                        f"{counts['event_services_count']} services, "
                        f"{counts['payments_count']} payments, "
                        f"{counts['reviews_count']} reviews, and "
                        f"{int(counts['has_invoice'])} invoice. "
                        "Use force_delete to delete anyway.",
                        counts
                    )

                EventService.objects.filter(event=event).delete()
                Payment.objects.filter(event=event).delete()
                Review.objects.filter(event=event).delete()
                Invoice.objects.filter(event=event).delete()
                event.delete()
        except DatabaseError as exc:
            logger.exception("Failed to delete event", extra={'event_id': event_id})
            raise PersistenceError() from exc

        logger.info(f"Deleted event {event_id}", extra={'force': force})
        return {
            'deleted_event_id': event_id,
            'deleted_event_services': counts['event_services_count'],
            'deleted_payments': counts['payments_count'],
            'deleted_reviews': counts['reviews_count'],
            'deleted_invoice': counts['has_invoice'],
        }

    # ==========================================================================
    # Status
    # ==========================================================================

    def toggle_status(self, event_id: int) -> Event:
        """Flip PENDING <-> CONFIRMED. Confirming re-checks the room."""
        with transaction.atomic():
            event = self._lock_event(event_id)
            previous_status = event.status

            if event.status == Event.Status.PENDING:
                self._ensure_room_free_for_event(event)
                event.status = Event.Status.CONFIRMED
            elif event.status == Event.Status.CONFIRMED:
                event.status = Event.Status.PENDING
            else:
                raise EventStateError(
                    "Only PENDING or CONFIRMED events can be toggled",
                    current_state=event.status
                )

            event.save(update_fields=['status', 'updated_at'])
            self._after_status_change(event, previous_status)

        logger.info(f"Event {event_id} status toggled {previous_status} -> {event.status}")
        return event

    def set_status(self, event_id: int, status: Any) -> Event:
        """Move an event along the status graph (``Event.STATUS_TRANSITIONS``)."""
        result = validate_enum(status, 'status', Event.Status.values, required=True)
        if isinstance(result, Err):
            raise ValidationFailedError(result.errors)
        target = result.value

        with transaction.atomic():
            event = self._lock_event(event_id)
            previous_status = event.status
            self._ensure_transition(event, target)

            if target in Event.get_blocking_statuses() and previous_status not in Event.get_blocking_statuses():
                self._ensure_room_free_for_event(event)

            event.status = target
            event.save(update_fields=['status', 'updated_at'])
            self._after_status_change(event, previous_status)

        logger.info(f"Event {event_id} status set {previous_status} -> {target}")
        return event

    def _ensure_transition(self, event: Event, target: str) -> None:
        if not event.can_transition_to(target):
            raise EventStateError(
                f"Cannot change event status from {event.status} to {target}",
                current_state=event.status,
                target_state=target
            )

    def _after_status_change(self, event: Event, previous_status: str) -> None:
        if event.status == previous_status:
            return
        if event.status == Event.Status.CONFIRMED:
            self._notify_approved(event)
        elif event.status == Event.Status.CANCELLED:
            self.invoices.cancel_for_event(event)
        elif event.status == Event.Status.COMPLETED:
            self.notifications.send(
                event.account_id,
                "Event Completed",
                f"Your event '{event.name}' has been completed. Thank you!",
                Notification.Type.COMPLETED,
            )

    def _notify_approved(self, event: Event) -> None:
        when = timezone.localtime(event.start_time).strftime('%Y-%m-%d %H:%M') if event.start_time else str(event.event_date)
        self.notifications.send(
            event.account_id,
            "Event Approved",
            f"Your event '{event.name}' on {when} has been approved.",
            Notification.Type.CONFIRMATION,
        )

    # ==========================================================================
    # References
    # ==========================================================================

    def _lock_event(self, event_id: int) -> Event:
        event = Event.objects.select_for_update().filter(id=event_id).first()
        if event is None:
            raise NotFoundError('Event', event_id)
        return event

    def _lock_bookable_room(self, room_id: int) -> Room:
        room = self.availability.lock_rooms([room_id]).get(room_id)
        if room is None or not room.is_bookable:
            raise EntityReferenceError(ROOM_UNAVAILABLE, field='room_id')
        return room

    def _get_account(self, account_id: Optional[int]) -> Optional[Account]:
        if not account_id:
            return None
        account = Account.objects.filter(id=account_id).first()
        if account is None:
            raise EntityReferenceError("Account not found", field='account_id')
        return account

    def _get_event_type(self, event_type_id: Optional[int]) -> Optional[EventType]:
        if not event_type_id:
            return None
        event_type = EventType.objects.filter(id=event_type_id, is_active=True).first()
        if event_type is None:
            raise EntityReferenceError("Event type not found or inactive", field='event_type_id')
        return event_type

    def _resolve_items(self, raw_items: List[Dict[str, Any]]) -> List[RequestedItem]:
        """Resolve and lock the requested service/variation pairs."""
        if not raw_items:
            return []

        service_ids = {item['service_id'] for item in raw_items}
        services = {
            service.id: service
            for service in Service.objects.filter(id__in=service_ids, is_active=True)
        }
        variations = self.availability.lock_variations(
            item['variation_id'] for item in raw_items if item.get('variation_id')
        )

        resolved = []
        for index, item in enumerate(raw_items):
            service = services.get(item['service_id'])
            if service is None:
                raise EntityReferenceError(
                    "Service not found or inactive",
                    field=f"service_variants[{index}].service_id"
                )

            variation = None
            if item.get('variation_id'):
                variation = variations.get(item['variation_id'])
                if variation is None or not variation.is_active or variation.service_id != service.id:
                    raise EntityReferenceError(
                        VARIATION_UNAVAILABLE,
                        field=f"service_variants[{index}].variation_id"
                    )

            custom_price = item.get('custom_price')
            resolved.append(RequestedItem(
                service=service,
                variation=variation,
                quantity=item.get('quantity') or 1,
                custom_price=to_money(custom_price) if custom_price is not None else None,
                scheduled_time=item.get('scheduled_time'),
                duration_hours=item.get('duration_hours'),
                notes=item.get('notes'),
            ))
        return resolved

    def _items_from_rows(self, event: Event, old_start: Optional[datetime]) -> List[RequestedItem]:
        """
        Current line items as requested items for re-booking after a move.

        Rows that followed the event window (scheduled at its old start)
        follow it to the new window; the others keep their own window.
        """
        rows = list(
            event.event_services.exclude(status=EventService.Status.CANCELLED)
            .select_related('service', 'variation')
        )
        self.availability.lock_variations(row.variation_id for row in rows)

        items = []
        for row in rows:
            follows_event = row.scheduled_time is None or row.scheduled_time == old_start
            items.append(RequestedItem(
                service=row.service,
                variation=row.variation,
                quantity=row.quantity,
                custom_price=row.custom_price,
                scheduled_time=None if follows_event else row.scheduled_time,
                duration_hours=None if follows_event else row.duration_hours,
                notes=row.notes,
            ))
        return items

    # ==========================================================================
    # Availability
    # ==========================================================================

    def _ensure_room_free(
        self,
        room: Room,
        start: datetime,
        end: datetime,
        exclude_event_id: int = None
    ) -> None:
        result = self.availability.check_room_availability(
            room.id, start, end=end, exclude_event_id=exclude_event_id, room=room
        )
        if not result.available:
            logger.warning(
                f"Room {room.id} unavailable: {result.reason}",
                extra={'room_id': room.id, 'conflicts': len(result.conflicts)}
            )
            raise BookingConflictError(result.reason, result.conflicts)

    def _ensure_room_free_for_event(self, event: Event) -> None:
        if not event.room_id or not event.start_time or not event.end_time:
            return
        room = self.availability.lock_rooms([event.room_id]).get(event.room_id)
        if room is None:
            return
        self._ensure_room_free(room, event.start_time, event.end_time, exclude_event_id=event.id)

    def _item_windows(
        self,
        items: List[RequestedItem],
        event_start: Optional[datetime],
        event_duration: Optional[Decimal]
    ) -> List[Optional[BookingWindow]]:
        """
        Booking window per item.

        An item starts at its own ``scheduled_time`` or the event start and
        lasts its own duration, its variation's, or the event's.
        """
        windows = []
        for item in items:
            start = item.scheduled_time or event_start
            hours = item.duration_hours
            if hours is None and item.variation is not None:
                hours = item.variation.duration_hours
            if hours is None:
                hours = event_duration
            if start is None or not hours:
                windows.append(None)
                continue
            windows.append(BookingWindow.build(start, duration_hours=hours))
        return windows

    def _ensure_variations_free(
        self,
        items: List[RequestedItem],
        windows: List[Optional[BookingWindow]],
        exclude_event_id: int = None
    ) -> None:
        requested: Dict[int, List[BookingWindow]] = {}
        for item, window in zip(items, windows):
            if item.variation is None or window is None:
                continue

            for other in requested.get(item.variation.id, []):
                if window.overlaps(other.start, other.end):
                    raise BookingConflictError(
                        f"Variation '{item.variation.name}' is requested twice for overlapping times"
                    )
            requested.setdefault(item.variation.id, []).append(window)

            result = self.availability.check_variation_availability(
                item.variation.id,
                window.start,
                end=window.end,
                exclude_event_id=exclude_event_id,
                variation=item.variation,
            )
            if not result.available:
                logger.warning(
                    f"Variation {item.variation.id} unavailable: {result.reason}",
                    extra={'variation_id': item.variation.id}
                )
                raise BookingConflictError(result.reason, result.conflicts)

    # ==========================================================================
    # Helpers
    # ==========================================================================

    def _create_event_services(
        self,
        event: Event,
        items: List[RequestedItem],
        windows: List[Optional[BookingWindow]]
    ) -> None:
        for item, window in zip(items, windows):
            EventService.objects.create(
                event=event,
                service=item.service,
                variation=item.variation,
                quantity=item.quantity,
                custom_price=item.custom_price,
                notes=item.notes,
                status=EventService.Status.CONFIRMED,
                scheduled_time=window.start if window else item.scheduled_time,
                duration_hours=(
                    to_money(window.duration_hours) if window else item.duration_hours
                ),
            )

    @staticmethod
    def _duration_hours(start: Optional[datetime], end: Optional[datetime]) -> Optional[Decimal]:
        if not start or not end:
            return None
        return Decimal((end - start).total_seconds()) / Decimal(3600)
