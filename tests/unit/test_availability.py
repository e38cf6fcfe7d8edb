# tests/unit/test_availability.py
"""
Unit Tests for AvailabilityService

Room and variation overlap checks over half-open windows.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from apps.core.models import Event, EventService, Room
from apps.core.services import AvailabilityService, BookingWindow, ValidationFailedError


class TestBookingWindow:
    """Tests for BookingWindow.build."""

    def test_end_from_duration(self, future_start):
        window = BookingWindow.build(future_start, duration_hours='1.5')

        assert window.end == future_start + timedelta(minutes=90)
        assert window.duration_hours == Decimal('1.5')

    def test_explicit_end(self, future_start):
        window = BookingWindow.build(future_start.isoformat(), end=(future_start + timedelta(hours=2)).isoformat())

        assert window.duration_hours == Decimal('2')

    @pytest.mark.parametrize('hours', ['0', '-2'])
    def test_non_positive_duration(self, future_start, hours):
        with pytest.raises(ValidationFailedError):
            BookingWindow.build(future_start, duration_hours=hours)

    def test_unparseable_start(self):
        with pytest.raises(ValidationFailedError) as exc_info:
            BookingWindow.build('tomorrow-ish', duration_hours=2)

        assert exc_info.value.errors == ['start must be a valid date']

    def test_end_not_after_start(self, future_start):
        with pytest.raises(ValidationFailedError):
            BookingWindow.build(future_start, end=future_start)

    def test_touching_windows_do_not_overlap(self, future_start):
        window = BookingWindow.build(future_start, duration_hours=2)

        assert not window.overlaps(future_start + timedelta(hours=2), future_start + timedelta(hours=4))
        assert not window.overlaps(future_start - timedelta(hours=1), future_start)
        assert window.overlaps(future_start + timedelta(hours=1), future_start + timedelta(hours=3))


@pytest.mark.django_db
class TestRoomAvailability:
    """Tests for room availability."""

    def setup_method(self):
        self.service = AvailabilityService()

    def test_free_room(self, create_room, future_start):
        room = create_room()

        result = self.service.check_room_availability(room.id, future_start, duration_hours=2)

        assert result.available is True
        assert result.to_dict() == {'available': True}

    def test_overlapping_confirmed_event_conflicts(self, create_room, create_event, future_start):
        room = create_room()
        booked = create_event(room=room, status=Event.Status.CONFIRMED, name='Event A')

        result = self.service.check_room_availability(
            room.id,
            future_start + timedelta(hours=1),
            end=future_start + timedelta(hours=3),
        )

        assert result.available is False
        assert result.conflicts[0]['event_id'] == booked.id
        assert result.conflicts[0]['event_name'] == 'Event A'

    def test_touching_boundary_is_free(self, create_room, create_event, future_start):
        room = create_room()
        create_event(room=room, status=Event.Status.CONFIRMED)

        result = self.service.check_room_availability(
            room.id,
            future_start + timedelta(hours=2),
            duration_hours=2,
        )

        assert result.available is True

    @pytest.mark.parametrize('status', [
        Event.Status.PENDING,
        Event.Status.CANCELLED,
        Event.Status.COMPLETED,
        Event.Status.RESCHEDULED,
    ])
    def test_non_blocking_statuses_ignored(self, create_room, create_event, future_start, status):
        room = create_room()
        create_event(room=room, status=status)

        result = self.service.check_room_availability(room.id, future_start, duration_hours=2)

        assert result.available is True

    def test_in_progress_blocks(self, create_room, create_event, future_start):
        room = create_room()
        create_event(room=room, status=Event.Status.IN_PROGRESS)

        result = self.service.check_room_availability(room.id, future_start, duration_hours=1)

        assert result.available is False

    def test_exclude_own_event(self, create_room, create_event, future_start):
        room = create_room()
        event = create_event(room=room, status=Event.Status.CONFIRMED)

        result = self.service.check_room_availability(
            room.id, future_start, duration_hours=2, exclude_event_id=event.id
        )

        assert result.available is True

    def test_other_room_does_not_conflict(self, create_room, create_event, future_start):
        create_event(room=create_room(name='Other'), status=Event.Status.CONFIRMED)
        room = create_room()

        assert self.service.check_room_availability(room.id, future_start, duration_hours=2).available

    def test_room_state(self, create_room, future_start):
        missing = self.service.check_room_availability(999999, future_start, duration_hours=1)
        inactive = self.service.check_room_availability(
            create_room(is_active=False).id, future_start, duration_hours=1
        )
        maintenance = self.service.check_room_availability(
            create_room(status=Room.Status.MAINTENANCE).id, future_start, duration_hours=1
        )

        assert missing.reason == 'Room not found'
        assert inactive.reason == 'Room is inactive'
        assert maintenance.reason == 'Room is not available (status: MAINTENANCE)'


@pytest.mark.django_db
class TestVariationAvailability:
    """Tests for variation availability."""

    def setup_method(self):
        self.service = AvailabilityService()

    def book_variation(self, event, variation, start, hours=2, status=EventService.Status.CONFIRMED):
        return EventService.objects.create(
            event=event,
            service=variation.service,
            variation=variation,
            scheduled_time=start,
            duration_hours=Decimal(hours),
            status=status,
        )

    def test_end_time_is_derived(self, create_event, create_variation, future_start):
        row = self.book_variation(create_event(), create_variation(), future_start, hours=3)

        assert row.end_time == future_start + timedelta(hours=3)

    def test_overlap_conflicts(self, create_event, create_variation, future_start):
        variation = create_variation()
        row = self.book_variation(create_event(), variation, future_start)

        result = self.service.check_variation_availability(
            variation.id, future_start + timedelta(minutes=30), duration_hours=1
        )

        assert result.available is False
        assert result.conflicts[0]['event_service_id'] == row.id

    def test_touching_is_free(self, create_event, create_variation, future_start):
        variation = create_variation()
        self.book_variation(create_event(), variation, future_start)

        result = self.service.check_variation_availability(
            variation.id, future_start + timedelta(hours=2), duration_hours=1
        )

        assert result.available is True

    def test_pending_and_cancelled_rows_ignored(self, create_event, create_variation, future_start):
        variation = create_variation()
        self.book_variation(create_event(), variation, future_start, status=EventService.Status.PENDING)
        self.book_variation(create_event(), variation, future_start, status=EventService.Status.CANCELLED)

        assert self.service.check_variation_availability(variation.id, future_start, duration_hours=2).available

    def test_rows_of_cancelled_events_ignored(self, create_event, create_variation, future_start):
        variation = create_variation()
        self.book_variation(create_event(status=Event.Status.CANCELLED), variation, future_start)

        assert self.service.check_variation_availability(variation.id, future_start, duration_hours=2).available

    def test_exclusions(self, create_event, create_variation, future_start):
        variation = create_variation()
        event = create_event()
        row = self.book_variation(event, variation, future_start)

        by_row = self.service.check_variation_availability(
            variation.id, future_start, duration_hours=2, exclude_event_service_id=row.id
        )
        by_event = self.service.check_variation_availability(
            variation.id, future_start, duration_hours=2, exclude_event_id=event.id
        )

        assert by_row.available is True
        assert by_event.available is True

    def test_inactive_variation(self, create_variation, future_start):
        variation = create_variation(is_active=False)

        result = self.service.check_variation_availability(variation.id, future_start, duration_hours=1)

        assert result.reason == 'Variation is inactive'
