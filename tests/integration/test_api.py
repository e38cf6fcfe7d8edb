# tests/integration/test_api.py
"""
Integration Tests for the Venue Booking API
"""

from datetime import date, datetime, timedelta, timezone as dt_timezone

import jwt
import pytest
from django.conf import settings
from django.urls import reverse

from apps.core.models import Event, Invoice, Notification, Room


def make_token(account, roles=('CUSTOMER',), **claims):
    now = datetime.now(dt_timezone.utc)
    payload = {
        'sub': str(account.id),
        'email': account.email,
        'roles': list(roles),
        'iss': settings.JWT_SETTINGS['ISSUER'],
        'iat': now,
        'exp': now + timedelta(hours=1),
    }
    payload.update(claims)
    return jwt.encode(
        payload,
        settings.JWT_SETTINGS['SIGNING_KEY'],
        algorithm=settings.JWT_SETTINGS['ALGORITHM'],
    )


@pytest.mark.django_db
class TestAuthentication:
    """Bearer token handling."""

    def test_missing_token(self, api_client):
        response = api_client.get(reverse('api:event-list'))

        assert response.status_code == 401
        assert response.data['success'] is False

    def test_valid_token(self, api_client, customer):
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {make_token(customer)}")

        response = api_client.get(reverse('api:event-list'))

        assert response.status_code == 200

    def test_expired_token(self, api_client, customer):
        expired = datetime.now(dt_timezone.utc) - timedelta(hours=2)
        token = make_token(customer, iat=expired, exp=expired + timedelta(hours=1))
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

        response = api_client.get(reverse('api:event-list'))

        assert response.status_code == 401

    def test_wrong_issuer(self, api_client, customer):
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {make_token(customer, iss='someone-else')}")

        response = api_client.get(reverse('api:event-list'))

        assert response.status_code == 401


@pytest.mark.django_db
class TestEventEndpoints:
    """Event booking over HTTP."""

    def test_create_event(self, customer_client, customer, booking_payload, create_variation):
        variation = create_variation()
        payload = booking_payload(service_variants=[
            {'service_id': variation.service_id, 'variation_id': variation.id, 'quantity': 1}
        ])

        response = customer_client.post(reverse('api:event-list'), payload, format='json')

        assert response.status_code == 201
        data = response.data['data']
        assert response.data['success'] is True
        assert data['event']['estimated_cost'] == '1900000.00'
        assert data['event']['status'] == 'PENDING'
        assert data['event']['account_id'] == customer.id
        assert len(data['event']['services']) == 1
        assert data['booked_services_count'] == 1
        assert data['invoice']['total_amount'] == '1900000.00'
        assert len(data['invoice']['details']) == 2

    def test_validation_error_body(self, customer_client):
        response = customer_client.post(reverse('api:event-list'), {'room_id': 'x'}, format='json')

        assert response.status_code == 400
        assert response.data['success'] is False
        assert response.data['error']['code'] == 'VALIDATION_ERROR'
        assert 'name is required' in response.data['error']['details']['errors']

    def test_conflict_body(self, staff_client, booking_payload, create_room, create_event, future_start):
        room = create_room()
        existing = create_event(room=room, status=Event.Status.CONFIRMED, name='Event A')

        response = staff_client.post(
            reverse('api:event-list'),
            booking_payload(room=room, start=future_start + timedelta(hours=1)),
            format='json',
        )

        assert response.status_code == 409
        conflicts = response.data['error']['details']['conflicts']
        assert conflicts[0]['event_id'] == existing.id

    def test_list_only_own_events(self, customer_client, customer, create_event):
        mine = create_event(account=customer)
        create_event()

        response = customer_client.get(reverse('api:event-list'), {'limit': 10})

        assert response.status_code == 200
        assert [e['id'] for e in response.data['results']] == [mine.id]
        assert response.data['pagination']['total_count'] == 1
        assert response.data['pagination']['limit'] == 10

    def test_staff_lists_everything(self, staff_client, create_event):
        create_event()
        create_event()

        response = staff_client.get(reverse('api:event-list'))

        assert response.data['pagination']['total_count'] == 2

    def test_retrieve_with_includes(self, customer_client, customer, create_room, create_event):
        event = create_event(account=customer, room=create_room())

        response = customer_client.get(
            reverse('api:event-detail', args=[event.id]), {'include': 'room,invoice'}
        )

        assert response.status_code == 200
        assert response.data['data']['room']['name'] == 'Grand Hall'
        assert response.data['data']['invoice'] is None

    def test_other_customers_event_is_hidden(self, customer_client, create_event):
        event = create_event()

        response = customer_client.get(reverse('api:event-detail', args=[event.id]))

        assert response.status_code == 403

    def test_missing_event(self, customer_client):
        response = customer_client.get(reverse('api:event-detail', args=[999999]))

        assert response.status_code == 404
        assert response.data['error'] == {
            'code': 'NOT_FOUND',
            'message': 'Event not found',
            'details': {'entity': 'Event', 'id': 999999},
            'request_id': response.data['error']['request_id'],
        }

    def test_customer_cannot_toggle(self, customer_client, customer, create_event):
        event = create_event(account=customer)

        response = customer_client.post(reverse('api:event-toggle-status', args=[event.id]))

        assert response.status_code == 403

    def test_staff_toggles(self, staff_client, customer, create_event):
        event = create_event(account=customer)

        response = staff_client.post(reverse('api:event-toggle-status', args=[event.id]))

        assert response.status_code == 200
        assert response.data['data']['status'] == 'CONFIRMED'
        assert Notification.objects.filter(account=customer, title='Event Approved').exists()

    def test_set_status_bad_transition(self, staff_client, create_event):
        event = create_event(status=Event.Status.COMPLETED)

        response = staff_client.post(
            reverse('api:event-set-status', args=[event.id]), {'status': 'PENDING'}, format='json'
        )

        assert response.status_code == 409
        assert response.data['error']['details']['current_state'] == 'COMPLETED'

    def test_delete_requires_force(self, staff_client, booking_payload):
        created = staff_client.post(reverse('api:event-list'), booking_payload(), format='json')
        event_id = created.data['data']['event']['id']

        refused = staff_client.delete(reverse('api:event-detail', args=[event_id]))
        forced = staff_client.delete(
            reverse('api:event-detail', args=[event_id]) + '?force_delete=true'
        )

        assert refused.status_code == 409
        assert refused.data['error']['details']['has_invoice'] is True
        assert forced.status_code == 200
        assert forced.data['data']['deleted_invoice'] is True
        assert not Invoice.objects.exists()

    def test_patch_event(self, customer_client, customer, create_room, create_event):
        event = create_event(account=customer, room=create_room())

        response = customer_client.patch(
            reverse('api:event-detail', args=[event.id]), {'name': 'Renamed'}, format='json'
        )

        assert response.status_code == 200
        assert response.data['data']['event']['name'] == 'Renamed'

    def test_patch_blank_name_rejected(self, customer_client, customer, create_room, create_event):
        event = create_event(account=customer, room=create_room(), name='Gala')

        response = customer_client.patch(
            reverse('api:event-detail', args=[event.id]), {'name': None}, format='json'
        )

        event.refresh_from_db()
        assert response.status_code == 400
        assert response.data['error']['code'] == 'VALIDATION_ERROR'
        assert event.name == 'Gala'


@pytest.mark.django_db
class TestCatalogEndpoints:
    """Rooms, services and variations over HTTP."""

    def test_customer_cannot_create_room(self, customer_client):
        response = customer_client.post(reverse('api:room-list'), {'name': 'Loft'}, format='json')

        assert response.status_code == 403

    def test_staff_creates_room(self, staff_client):
        response = staff_client.post(
            reverse('api:room-list'),
            {'name': 'Loft', 'guest_capacity': 40, 'hourly_rate': '75.00'},
            format='json',
        )

        assert response.status_code == 201
        assert response.data['data']['hourly_rate'] == '75.00'
        assert Room.objects.filter(name='Loft').exists()

    def test_room_listing(self, customer_client, create_room):
        create_room(name='Open')
        create_room(name='Closed', is_active=False)

        response = customer_client.get(reverse('api:room-list'))

        assert [room['name'] for room in response.data['results']] == ['Open']
        assert set(response.data['pagination']) == {
            'page', 'limit', 'total_count', 'total_pages', 'has_next_page', 'has_previous_page'
        }

    def test_room_availability(self, customer_client, create_room, create_event, future_start):
        room = create_room()
        create_event(room=room, status=Event.Status.CONFIRMED)

        busy = customer_client.get(
            reverse('api:room-availability', args=[room.id]),
            {'start_time': future_start.isoformat(), 'duration_hours': '1'},
        )
        free = customer_client.get(
            reverse('api:room-availability', args=[room.id]),
            {'start_time': (future_start + timedelta(hours=2)).isoformat(), 'duration_hours': '1'},
        )

        assert busy.data['data']['available'] is False
        assert free.data['data'] == {'available': True}

    def test_room_statistics_for_staff_only(self, customer_client, staff_client, create_room):
        create_room()

        assert customer_client.get(reverse('api:room-statistics')).status_code == 403
        response = staff_client.get(reverse('api:room-statistics'))
        assert response.data['data']['total_rooms'] == 1

    def test_bad_page(self, customer_client):
        response = customer_client.get(reverse('api:room-list'), {'page': '0'})

        assert response.status_code == 400

    def test_variation_toggle(self, staff_client, create_variation):
        variation = create_variation()

        response = staff_client.post(reverse('api:variation-toggle-status', args=[variation.id]))

        assert response.status_code == 200
        assert response.data['data']['is_active'] is False


@pytest.mark.django_db
class TestPricingTierEndpoints:
    """Pricing tiers over HTTP."""

    def payload(self, variation, **overrides):
        data = {
            'variation_id': variation.id,
            'price_modifier': '150.00',
            'valid_from': '2030-06-01',
            'valid_to': '2030-08-31',
        }
        data.update(overrides)
        return data

    def test_customer_cannot_create(self, customer_client, create_variation):
        response = customer_client.post(
            reverse('api:pricing-tier-list'), self.payload(create_variation()), format='json'
        )

        assert response.status_code == 403

    def test_staff_creates_tier(self, staff_client, create_variation):
        variation = create_variation()

        response = staff_client.post(
            reverse('api:pricing-tier-list'), self.payload(variation), format='json'
        )

        assert response.status_code == 201
        assert response.data['data']['variation_id'] == variation.id
        assert response.data['data']['price_modifier'] == '150.00'

    def test_invalid_dates(self, staff_client, create_variation):
        response = staff_client.post(
            reverse('api:pricing-tier-list'),
            self.payload(create_variation(), valid_to='2030-05-01'),
            format='json',
        )

        assert response.status_code == 400
        assert response.data['error']['code'] == 'VALIDATION_ERROR'

    def test_listing_filters_by_day(self, customer_client, create_variation, create_pricing_tier):
        variation = create_variation()
        summer = create_pricing_tier(variation=variation)
        create_pricing_tier(variation=variation, valid_from=date(2030, 12, 1), valid_to=date(2030, 12, 31))

        response = customer_client.get(
            reverse('api:pricing-tier-list'), {'variation_id': variation.id, 'valid_on': '2030-07-01'}
        )

        assert response.status_code == 200
        assert [tier['id'] for tier in response.data['results']] == [summer.id]

    def test_active_and_range(self, customer_client, create_pricing_tier):
        cheap = create_pricing_tier(price_modifier='-25.00')
        create_pricing_tier(price_modifier='300.00', is_active=False)

        active = customer_client.get(reverse('api:pricing-tier-active'))
        in_range = customer_client.get(
            reverse('api:pricing-tier-range'), {'min_modifier': '-50', 'max_modifier': '0'}
        )
        bad_range = customer_client.get(
            reverse('api:pricing-tier-range'), {'min_modifier': '10', 'max_modifier': '5'}
        )

        assert [tier['id'] for tier in active.data['data']] == [cheap.id]
        assert [tier['id'] for tier in in_range.data['data']] == [cheap.id]
        assert bad_range.status_code == 400

    def test_toggle_and_delete(self, staff_client, create_pricing_tier):
        tier = create_pricing_tier()

        toggled = staff_client.post(reverse('api:pricing-tier-toggle-status', args=[tier.id]))
        deleted = staff_client.delete(reverse('api:pricing-tier-detail', args=[tier.id]))

        assert toggled.data['data']['is_active'] is False
        assert deleted.data['data'] == {'deleted_pricing_tier_id': tier.id}

    def test_variation_delete_reports_tiers(self, staff_client, create_pricing_tier):
        tier = create_pricing_tier()

        response = staff_client.delete(reverse('api:variation-detail', args=[tier.variation_id]))

        assert response.status_code == 409
        assert response.data['error']['details']['pricing_tiers_count'] == 1


@pytest.mark.django_db
class TestAccountEndpoints:
    """Invoices and notifications are scoped to the caller."""

    def test_invoice_listing_is_scoped(self, customer_client, staff_client, customer, booking_payload):
        staff_client.post(reverse('api:event-list'), booking_payload(account_id=customer.id), format='json')
        staff_client.post(reverse('api:event-list'), booking_payload(name='Other party'), format='json')

        mine = customer_client.get(reverse('api:invoice-list'))
        everything = staff_client.get(reverse('api:invoice-list'))

        assert mine.data['pagination']['total_count'] == 1
        assert everything.data['pagination']['total_count'] == 2

    def test_notifications(self, customer_client, customer):
        Notification.objects.create(account=customer, title='Hello', message='World')

        listing = customer_client.get(reverse('api:notification-list'))
        notification_id = listing.data['results'][0]['id']
        read = customer_client.post(reverse('api:notification-read', args=[notification_id]))
        after = customer_client.get(reverse('api:notification-list'), {'unread_only': 'true'})

        assert listing.data['unread_count'] == 1
        assert read.data['data']['is_read'] is True
        assert after.data['results'] == []
        assert after.data['unread_count'] == 0
