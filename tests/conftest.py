# tests/conftest.py
"""
Pytest Configuration and Fixtures

Provides common fixtures for venue booking tests.
"""

import uuid
from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from shared.common.authentication import TokenUser


@pytest.fixture
def api_client():
    """Provide API client for testing."""
    return APIClient()


@pytest.fixture
def future_start():
    """10:00 ten days from now."""
    start = timezone.now() + timedelta(days=10)
    return start.replace(hour=10, minute=0, second=0, microsecond=0)


@pytest.fixture
def create_account():
    """Factory fixture for creating accounts."""
    from apps.core.models import Account

    def _create_account(**kwargs):
        defaults = {
            'email': f"{uuid.uuid4().hex[:12]}@example.com",
            'full_name': 'Test Customer',
            'role': Account.Role.CUSTOMER,
        }
        defaults.update(kwargs)

        return Account.objects.create(**defaults)

    return _create_account


@pytest.fixture
def create_room():
    """Factory fixture for creating rooms."""
    from apps.core.models import Room

    def _create_room(**kwargs):
        defaults = {
            'name': 'Grand Hall',
            'status': Room.Status.AVAILABLE,
            'guest_capacity': 200,
            'base_price': Decimal('1000000.00'),
            'hourly_rate': Decimal('200000.00'),
        }
        defaults.update(kwargs)

        return Room.objects.create(**defaults)

    return _create_room


@pytest.fixture
def create_service_type():
    """Factory fixture for creating service types."""
    from apps.core.models import ServiceType

    def _create_service_type(**kwargs):
        defaults = {
            'name': f"Type {uuid.uuid4().hex[:6]}",
        }
        defaults.update(kwargs)

        return ServiceType.objects.create(**defaults)

    return _create_service_type


@pytest.fixture
def create_service():
    """Factory fixture for creating services."""
    from apps.core.models import Service

    def _create_service(**kwargs):
        defaults = {
            'name': 'Catering',
            'description': 'Buffet and drinks',
        }
        defaults.update(kwargs)

        return Service.objects.create(**defaults)

    return _create_service


@pytest.fixture
def create_variation(create_service):
    """Factory fixture for creating variations."""
    from apps.core.models import Variation

    def _create_variation(**kwargs):
        defaults = {
            'name': 'Standard',
            'base_price': Decimal('500000.00'),
        }
        defaults.update(kwargs)
        if 'service' not in defaults:
            defaults['service'] = create_service()

        return Variation.objects.create(**defaults)

    return _create_variation


@pytest.fixture
def create_pricing_tier(create_variation):
    """Factory fixture for creating pricing tiers."""
    from apps.core.models import PricingTier

    def _create_pricing_tier(**kwargs):
        defaults = {
            'price_modifier': Decimal('50.00'),
            'valid_from': date(2030, 6, 1),
            'valid_to': date(2030, 8, 31),
        }
        defaults.update(kwargs)
        if 'variation' not in defaults:
            defaults['variation'] = create_variation()

        return PricingTier.objects.create(**defaults)

    return _create_pricing_tier


@pytest.fixture
def create_event_type():
    """Factory fixture for creating event types."""
    from apps.core.models import EventType

    def _create_event_type(**kwargs):
        defaults = {
            'name': f"Wedding {uuid.uuid4().hex[:6]}",
        }
        defaults.update(kwargs)

        return EventType.objects.create(**defaults)

    return _create_event_type


@pytest.fixture
def create_event(future_start):
    """Factory fixture for creating events directly (no booking checks)."""
    from apps.core.models import Event

    def _create_event(**kwargs):
        start = kwargs.pop('start_time', future_start)
        end = kwargs.pop('end_time', start + timedelta(hours=2))
        defaults = {
            'name': 'Test Event',
            'event_date': start.date(),
            'start_time': start,
            'end_time': end,
            'status': Event.Status.PENDING,
        }
        defaults.update(kwargs)

        return Event.objects.create(**defaults)

    return _create_event


@pytest.fixture
def customer(create_account):
    return create_account(full_name='Cathy Customer')


@pytest.fixture
def staff_account(create_account):
    from apps.core.models import Account

    return create_account(full_name='Sam Staff', role=Account.Role.STAFF)


@pytest.fixture
def customer_user(customer):
    """Authenticated caller owning ``customer``."""
    return TokenUser({'sub': str(customer.id), 'email': customer.email, 'roles': ['CUSTOMER']})


@pytest.fixture
def staff_user(staff_account):
    return TokenUser({'sub': str(staff_account.id), 'email': staff_account.email, 'roles': ['STAFF']})


@pytest.fixture
def customer_client(customer_user):
    client = APIClient()
    client.force_authenticate(user=customer_user)
    return client


@pytest.fixture
def staff_client(staff_user):
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


@pytest.fixture
def booking_payload(create_room, future_start):
    """Factory for a valid event create payload."""

    def _booking_payload(room=None, start=None, hours=2, **kwargs):
        room = room or create_room()
        start = start or future_start
        payload = {
            'name': 'Annual Gala',
            'room_id': room.id,
            'start_time': start.isoformat(),
            'end_time': (start + timedelta(hours=hours)).isoformat(),
        }
        payload.update(kwargs)
        return payload

    return _booking_payload
