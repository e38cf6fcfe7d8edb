# apps/core/services/availability_service.py
"""
Availability Service

Time-window overlap checks for rooms and service variations.

Windows are half-open ``[start, end)``: two bookings conflict iff
``existing.start < requested.end and existing.end > requested.start``,
so back-to-back bookings do not conflict. The checks only read; callers
that write based on the answer must take the resource locks first
(``lock_rooms`` / ``lock_variations``) inside the same transaction.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional, Dict, Any, List, Iterable

from django.db.models import Q

from shared.common.validators import parse_datetime, Err, validate_number
from apps.core.models import Room, Variation, Event, EventService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingWindow:
    """A half-open ``[start, end)`` interval."""
    start: datetime
    end: datetime

    @classmethod
    def build(
        cls,
        start: Any,
        end: Any = None,
        duration_hours: Any = None,
    ) -> 'BookingWindow':
        """
        Build a window from a start plus either an end or a duration in hours.

        Raises ValidationFailedError for unparseable values or an empty window.
        """
        from .exceptions import ValidationFailedError

        start_dt = parse_datetime(start) if start is not None else None
        if start_dt is None:
            raise ValidationFailedError(["start must be a valid date"])

        if end is not None:
            end_dt = parse_datetime(end)
            if end_dt is None:
                raise ValidationFailedError(["end must be a valid date"])
        else:
            result = validate_number(duration_hours, 'duration_hours', required=True)
            if isinstance(result, Err):
                raise ValidationFailedError(result.errors)
            if result.value <= 0:
                raise ValidationFailedError(["duration_hours must be greater than 0"])
            end_dt = start_dt + timedelta(hours=float(result.value))

        if end_dt <= start_dt:
            raise ValidationFailedError(["End time must be after start time"])

        return cls(start=start_dt, end=end_dt)

    @property
    def duration_hours(self) -> Decimal:
        return Decimal((self.end - self.start).total_seconds()) / Decimal(3600)

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return start < self.end and end > self.start


@dataclass
class AvailabilityResult:
    """Outcome of an availability check."""
    available: bool
    reason: Optional[str] = None
    conflicts: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = {'available': self.available}
        if self.reason:
            data['reason'] = self.reason
        if self.conflicts:
            data['conflicts'] = self.conflicts
        return data


class AvailabilityService:
    """
    Service for resource availability.

    Handles:
    - Resource row locks
    - Room availability
    - Variation availability
    """

    # ==========================================================================
    # Locks
    # ==========================================================================

    def lock_rooms(self, room_ids: Iterable[int]) -> Dict[int, Room]:
        """Lock room rows (ascending id) for the rest of the transaction."""
        ids = sorted({rid for rid in room_ids if rid})
        if not ids:
            return {}
        rooms = Room.objects.select_for_update().filter(id__in=ids).order_by('id')
        return {room.id: room for room in rooms}

    def lock_variations(self, variation_ids: Iterable[int]) -> Dict[int, Variation]:
        """Lock variation rows (ascending id) for the rest of the transaction."""
        ids = sorted({vid for vid in variation_ids if vid})
        if not ids:
            return {}
        variations = (
            Variation.objects.select_for_update()
            .filter(id__in=ids)
            .order_by('id')
        )
        return {variation.id: variation for variation in variations}

    # ==========================================================================
    # Rooms
    # ==========================================================================

    def find_room_conflicts(
        self,
        room_id: int,
        window: BookingWindow,
        exclude_event_id: int = None
    ) -> List[Event]:
        """Blocking events in the room whose window intersects ``window``."""
        queryset = Event.objects.filter(
            room_id=room_id,
            status__in=Event.get_blocking_statuses(),
            start_time__isnull=False,
            end_time__isnull=False,
        ).filter(
            Q(start_time__lt=window.end) & Q(end_time__gt=window.start)
        )

        if exclude_event_id:
            queryset = queryset.exclude(id=exclude_event_id)

        return list(queryset.order_by('start_time'))

    def check_room_availability(
        self,
        room_id: int,
        start: Any,
        end: Any = None,
        duration_hours: Any = None,
        exclude_event_id: int = None,
        room: Room = None
    ) -> AvailabilityResult:
        """Check that the room is bookable and free for the window."""
        window = BookingWindow.build(start, end=end, duration_hours=duration_hours)

        if room is None:
            room = Room.objects.filter(id=room_id).first()
        if room is None:
            return AvailabilityResult(False, reason="Room not found")
        if not room.is_active:
            return AvailabilityResult(False, reason="Room is inactive")
        if room.status != Room.Status.AVAILABLE:
            return AvailabilityResult(
                False, reason=f"Room is not available (status: {room.status})"
            )

        conflicts = self.find_room_conflicts(room.id, window, exclude_event_id)
        if conflicts:
            return AvailabilityResult(
                False,
                reason="Room is already booked for the requested time",
                conflicts=[self._event_conflict(e) for e in conflicts],
            )

        return AvailabilityResult(True)

    # ==========================================================================
    # Variations
    # ==========================================================================

    def find_variation_conflicts(
        self,
        variation_id: int,
        window: BookingWindow,
        exclude_event_service_id: int = None,
        exclude_event_id: int = None
    ) -> List[EventService]:
        """CONFIRMED line items on the variation whose window intersects ``window``."""
        queryset = EventService.objects.filter(
            variation_id=variation_id,
            status=EventService.Status.CONFIRMED,
            scheduled_time__isnull=False,
            end_time__isnull=False,
        ).filter(
            Q(scheduled_time__lt=window.end) & Q(end_time__gt=window.start)
        ).exclude(event__status=Event.Status.CANCELLED)

        if exclude_event_service_id:
            queryset = queryset.exclude(id=exclude_event_service_id)
        if exclude_event_id:
            queryset = queryset.exclude(event_id=exclude_event_id)

        return list(queryset.select_related('event').order_by('scheduled_time'))

    def check_variation_availability(
        self,
        variation_id: int,
        start: Any,
        duration_hours: Any = None,
        end: Any = None,
        exclude_event_service_id: int = None,
        exclude_event_id: int = None,
        variation: Variation = None
    ) -> AvailabilityResult:
        """Check that the variation is active and free for the window."""
        window = BookingWindow.build(start, end=end, duration_hours=duration_hours)

        if variation is None:
            variation = Variation.objects.filter(id=variation_id).first()
        if variation is None:
            return AvailabilityResult(False, reason="Variation not found")
        if not variation.is_active:
            return AvailabilityResult(False, reason="Variation is inactive")

        conflicts = self.find_variation_conflicts(
            variation.id,
            window,
            exclude_event_service_id=exclude_event_service_id,
            exclude_event_id=exclude_event_id,
        )
        if conflicts:
            return AvailabilityResult(
                False,
                reason=f"Variation '{variation.name}' is already booked for the requested time",
                conflicts=[self._event_service_conflict(es) for es in conflicts],
            )

        return AvailabilityResult(True)

    # ==========================================================================
    # Helpers
    # ==========================================================================

    @staticmethod
    def _event_conflict(event: Event) -> Dict[str, Any]:
        return {
            'type': 'room',
            'resource_id': event.room_id,
            'event_id': event.id,
            'event_name': event.name,
            'status': event.status,
            'start': event.start_time.isoformat(),
            'end': event.end_time.isoformat(),
            'message': f"Room conflict with event {event.id} ({event.name})",
        }

    @staticmethod
    def _event_service_conflict(event_service: EventService) -> Dict[str, Any]:
        return {
            'type': 'variation',
            'resource_id': event_service.variation_id,
            'event_service_id': event_service.id,
            'event_id': event_service.event_id,
            'status': event_service.status,
            'start': event_service.scheduled_time.isoformat(),
            'end': event_service.end_time.isoformat(),
            'message': (
                f"Variation conflict with booking {event_service.id} "
                f"of event {event_service.event_id}"
            ),
        }
