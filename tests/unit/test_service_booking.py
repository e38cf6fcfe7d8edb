# tests/unit/test_service_booking.py
"""
Unit Tests for ServiceBookingService
"""

from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.db.models import QuerySet

from shared.common.authentication import TokenUser
from apps.core.models import Event, EventService, Invoice, Notification
from apps.core.services import (
    EventBookingService,
    ServiceBookingService,
    BookingConflictError,
    EntityReferenceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
)


@pytest.fixture
def booked_event(booking_payload, customer):
    return EventBookingService().create_event(booking_payload(account_id=customer.id)).event


@pytest.mark.django_db
class TestAddService:
    """Tests for add_service."""

    def setup_method(self):
        self.service = ServiceBookingService()

    def test_add_updates_cost_and_invoice(self, booked_event, create_variation, customer):
        variation = create_variation(base_price=Decimal('250.00'))

        row = self.service.add_service({
            'event_id': booked_event.id,
            'service_id': variation.service_id,
            'variation_id': variation.id,
            'quantity': 2,
        })

        booked_event.refresh_from_db()
        invoice = Invoice.objects.get(event=booked_event)
        assert row.scheduled_time == booked_event.start_time
        assert row.end_time == booked_event.end_time
        assert booked_event.estimated_cost == Decimal('1400500.00')
        assert invoice.total_amount == booked_event.estimated_cost
        assert invoice.details.count() == 2
        assert Notification.objects.filter(account=customer, title='Service Booked').exists()

    def test_variation_duration_sets_window(self, booked_event, create_variation):
        variation = create_variation(duration_hours=Decimal('0.5'))

        row = self.service.add_service({
            'event_id': booked_event.id,
            'service_id': variation.service_id,
            'variation_id': variation.id,
        })

        assert row.end_time == booked_event.start_time + timedelta(minutes=30)

    def test_conflicting_variation(self, booked_event, create_event, create_variation, future_start):
        variation = create_variation()
        other = create_event(name='Elsewhere')
        EventService.objects.create(
            event=other,
            service=variation.service,
            variation=variation,
            scheduled_time=future_start,
            duration_hours=Decimal('1'),
        )

        with pytest.raises(BookingConflictError):
            self.service.add_service({
                'event_id': booked_event.id,
                'service_id': variation.service_id,
                'variation_id': variation.id,
            })

        assert not EventService.objects.filter(event=booked_event).exists()

    def test_closed_event(self, create_event, create_service):
        event = create_event(status=Event.Status.CANCELLED)

        with pytest.raises(EntityReferenceError):
            self.service.add_service({'event_id': event.id, 'service_id': create_service().id})

    def test_foreign_event(self, booked_event, create_service, create_account):
        stranger = TokenUser({'sub': str(create_account().id), 'roles': ['CUSTOMER']})

        with pytest.raises(PermissionDeniedError):
            self.service.add_service(
                {'event_id': booked_event.id, 'service_id': create_service().id},
                actor=stranger,
            )


@pytest.mark.django_db
class TestChangeService:
    """Tests for update_service and remove_service."""

    def setup_method(self):
        self.service = ServiceBookingService()

    def add(self, event, variation, **kwargs):
        data = {'event_id': event.id, 'service_id': variation.service_id, 'variation_id': variation.id}
        data.update(kwargs)
        return self.service.add_service(data)

    def test_update_keeps_own_booking_out_of_conflicts(self, booked_event, create_variation):
        row = self.add(booked_event, create_variation(base_price=Decimal('100.00')))

        updated = self.service.update_service(row.id, {'quantity': 3, 'notes': 'Extra plates'})

        booked_event.refresh_from_db()
        assert updated.quantity == 3
        assert booked_event.estimated_cost == Decimal('1400300.00')

    def test_custom_price(self, booked_event, create_variation):
        row = self.add(booked_event, create_variation(base_price=Decimal('100.00')))

        self.service.update_service(row.id, {'custom_price': '10'})

        booked_event.refresh_from_db()
        assert booked_event.estimated_cost == Decimal('1400010.00')

    def test_remove(self, booked_event, create_variation):
        row = self.add(booked_event, create_variation(base_price=Decimal('100.00')))

        result = self.service.remove_service(row.id)

        booked_event.refresh_from_db()
        assert result == {'deleted_event_service_id': row.id, 'event_id': booked_event.id}
        assert booked_event.estimated_cost == Decimal('1400000.00')
        assert Invoice.objects.get(event=booked_event).details.count() == 1

    def test_missing_row(self):
        with pytest.raises(NotFoundError):
            self.service.remove_service(424242)

    def test_line_item_stays_on_its_event(self, booked_event, create_variation, create_event):
        row = self.add(booked_event, create_variation(base_price=Decimal('100.00')))
        other = create_event(account=booked_event.account, name='Second party')

        with pytest.raises(ValidationFailedError) as exc_info:
            self.service.update_service(row.id, {'event_id': other.id, 'quantity': 2})

        row.refresh_from_db()
        booked_event.refresh_from_db()
        other.refresh_from_db()
        assert 'event_id cannot be changed' in exc_info.value.errors[0]
        assert row.event_id == booked_event.id
        assert row.quantity == 1
        assert booked_event.estimated_cost == Decimal('1400100.00')
        assert Invoice.objects.get(event=booked_event).total_amount == Decimal('1400100.00')
        assert not Invoice.objects.filter(event=other).exists()

    def test_current_event_id_accepted(self, booked_event, create_variation):
        row = self.add(booked_event, create_variation(base_price=Decimal('100.00')))

        updated = self.service.update_service(row.id, {'event_id': booked_event.id, 'quantity': 2})

        assert updated.quantity == 2
        assert updated.event_id == booked_event.id

    @pytest.mark.parametrize('payload', [{'quantity': None}, {'service_id': None}, {'status': ''}])
    def test_sent_fields_need_values(self, booked_event, create_variation, payload):
        row = self.add(booked_event, create_variation())

        with pytest.raises(ValidationFailedError):
            self.service.update_service(row.id, payload)

    @pytest.mark.parametrize('operation', ['update', 'remove'])
    def test_event_locked_before_line_item(self, booked_event, create_variation, operation):
        row = self.add(booked_event, create_variation(base_price=Decimal('100.00')))
        locked = []
        select_for_update = QuerySet.select_for_update

        def record(queryset, *args, **kwargs):
            locked.append(queryset.model.__name__)
            return select_for_update(queryset, *args, **kwargs)

        with patch.object(QuerySet, 'select_for_update', autospec=True, side_effect=record):
            if operation == 'update':
                self.service.update_service(row.id, {'quantity': 2})
            else:
                self.service.remove_service(row.id)

        assert locked[:2] == ['Event', 'EventService']
        if 'Variation' in locked:
            assert locked.index('Variation') > locked.index('EventService')
