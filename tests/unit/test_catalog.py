# tests/unit/test_catalog.py
"""
Unit Tests for CatalogService, ImageService and ReviewService
"""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from apps.core.models import Event, EventService, Image, Notification, PricingTier, Room, Variation
from apps.core.services import (
    CatalogService,
    ImageService,
    ImageStorage,
    ReviewService,
    DependencyError,
    EntityReferenceError,
    NotFoundError,
    PermissionDeniedError,
    PricingTierService,
    StorageError,
    ValidationFailedError,
)


@pytest.mark.django_db
class TestRooms:
    """Room master data."""

    def setup_method(self):
        self.service = CatalogService()

    def test_create_room(self):
        room = self.service.create_room({
            'name': 'Garden Terrace',
            'guest_capacity': 80,
            'base_price': '2500.00',
            'amenities': [' Wi-Fi ', 'Projector', ''],
        })

        assert room.status == Room.Status.AVAILABLE
        assert room.base_price == Decimal('2500.00')
        assert room.amenities == ['Wi-Fi', 'Projector']

    def test_create_room_requires_name(self):
        with pytest.raises(ValidationFailedError):
            self.service.create_room({'guest_capacity': 10})

    def test_amenities_must_be_strings(self):
        with pytest.raises(ValidationFailedError):
            self.service.create_room({'name': 'Loft', 'amenities': [1, 2]})

    def test_soft_delete_and_restore(self, create_room):
        room = create_room()

        self.service.delete_room(room.id)
        room.refresh_from_db()
        assert room.is_active is False

        self.service.restore_room(room.id)
        room.refresh_from_db()
        assert room.is_active is True

    def test_statistics(self, create_room):
        create_room(name='A')
        create_room(name='B', status=Room.Status.MAINTENANCE)
        create_room(name='C', is_active=False)

        stats = self.service.get_room_statistics()

        assert stats['total_rooms'] == 3
        assert stats['active_rooms'] == 2
        assert stats['inactive_rooms'] == 1
        assert stats['by_status']['AVAILABLE'] == 1
        assert stats['by_status']['MAINTENANCE'] == 1

    def test_missing_room(self):
        with pytest.raises(NotFoundError) as exc_info:
            self.service.get_room(424242)

        assert exc_info.value.message == 'Room not found'

    @pytest.mark.parametrize('payload', [{'name': None}, {'status': ''}, {'guest_capacity': None}])
    def test_update_room_keeps_required_fields(self, create_room, payload):
        room = create_room(name='Loft')

        with pytest.raises(ValidationFailedError):
            self.service.update_room(room.id, payload)

        room.refresh_from_db()
        assert room.name == 'Loft'

    def test_update_room_clears_optional_price(self, create_room):
        room = create_room(base_price=Decimal('100.00'))

        updated = self.service.update_room(room.id, {'base_price': None})

        assert updated.base_price is None


@pytest.mark.django_db
class TestVariations:
    """Variation master data."""

    def setup_method(self):
        self.service = CatalogService()

    def test_create_variation(self, create_service):
        service = create_service()

        variation = self.service.create_variation({
            'service_id': service.id,
            'name': 'Premium',
            'base_price': '120.50',
            'duration_hours': '3',
        })

        assert variation.service_id == service.id
        assert variation.base_price == Decimal('120.50')

    def test_inactive_service_rejected(self, create_service):
        service = create_service(is_active=False)

        with pytest.raises(EntityReferenceError):
            self.service.create_variation({'service_id': service.id, 'name': 'X', 'base_price': '5'})

    def test_toggle(self, create_variation):
        variation = create_variation()

        assert self.service.toggle_variation_status(variation.id).is_active is False
        assert self.service.toggle_variation_status(variation.id).is_active is True

    def test_delete_with_bookings_refused(self, create_event, create_variation):
        variation = create_variation()
        EventService.objects.create(event=create_event(), service=variation.service, variation=variation)
        EventService.objects.create(
            event=create_event(status=Event.Status.COMPLETED), service=variation.service, variation=variation
        )

        with pytest.raises(DependencyError) as exc_info:
            self.service.delete_variation(variation.id)

        assert exc_info.value.counts == {
            'pricing_tiers_count': 0, 'bookings_count': 2, 'active_bookings_count': 1,
        }

    def test_force_delete_detaches_bookings(self, create_event, create_variation):
        variation = create_variation()
        row = EventService.objects.create(event=create_event(), service=variation.service, variation=variation)

        result = self.service.delete_variation(variation.id, force=True)

        row.refresh_from_db()
        assert result['detached_bookings'] == 1
        assert row.variation_id is None
        assert not Variation.objects.filter(id=variation.id).exists()

    def test_delete_with_pricing_tiers_refused(self, create_variation, create_pricing_tier):
        variation = create_variation()
        create_pricing_tier(variation=variation)

        with pytest.raises(DependencyError) as exc_info:
            self.service.delete_variation(variation.id)

        assert exc_info.value.counts['pricing_tiers_count'] == 1
        assert Variation.objects.filter(id=variation.id).exists()

    def test_force_delete_removes_pricing_tiers(self, create_variation, create_pricing_tier):
        variation = create_variation()
        create_pricing_tier(variation=variation)
        create_pricing_tier(variation=variation, price_modifier=Decimal('-20.00'))

        result = self.service.delete_variation(variation.id, force=True)

        assert result['deleted_pricing_tiers'] == 2
        assert not PricingTier.objects.filter(variation_id=variation.id).exists()


@pytest.mark.django_db
class TestPricingTiers:
    """Dated price adjustments of variations."""

    def setup_method(self):
        self.service = PricingTierService()

    def test_create_tier(self, create_variation):
        variation = create_variation()

        tier = self.service.create_tier({
            'variation_id': variation.id,
            'price_modifier': '-75.50',
            'valid_from': '2030-12-20',
            'valid_to': '2031-01-05',
        })

        assert tier.variation_id == variation.id
        assert tier.price_modifier == Decimal('-75.50')
        assert tier.valid_from == date(2030, 12, 20)
        assert tier.is_active is True

    def test_inactive_variation_rejected(self, create_variation):
        variation = create_variation(is_active=False)

        with pytest.raises(EntityReferenceError):
            self.service.create_tier({
                'variation_id': variation.id,
                'price_modifier': '10',
                'valid_from': '2030-01-01',
                'valid_to': '2030-01-31',
            })

    def test_dates_out_of_order(self, create_variation):
        with pytest.raises(ValidationFailedError) as exc_info:
            self.service.create_tier({
                'variation_id': create_variation().id,
                'price_modifier': '10',
                'valid_from': '2030-02-01',
                'valid_to': '2030-01-31',
            })

        assert exc_info.value.errors == ['valid_to cannot be before valid_from']

    def test_update_checks_merged_dates(self, create_pricing_tier):
        tier = create_pricing_tier()

        with pytest.raises(ValidationFailedError):
            self.service.update_tier(tier.id, {'valid_to': '2030-05-01'})

        tier.refresh_from_db()
        assert tier.valid_to == date(2030, 8, 31)

    def test_update_modifier(self, create_pricing_tier):
        tier = create_pricing_tier()

        updated = self.service.update_tier(tier.id, {'price_modifier': '125'})

        assert updated.price_modifier == Decimal('125')

    def test_sent_modifier_needs_value(self, create_pricing_tier):
        tier = create_pricing_tier()

        with pytest.raises(ValidationFailedError):
            self.service.update_tier(tier.id, {'price_modifier': None})

    def test_toggle(self, create_pricing_tier):
        tier = create_pricing_tier()

        assert self.service.toggle_tier_status(tier.id).is_active is False
        assert self.service.toggle_tier_status(tier.id).is_active is True

    def test_delete(self, create_pricing_tier):
        tier = create_pricing_tier()

        assert self.service.delete_tier(tier.id) == {'deleted_pricing_tier_id': tier.id}
        with pytest.raises(NotFoundError):
            self.service.get_tier(tier.id)

    def test_active_tiers_on_date(self, create_variation, create_pricing_tier):
        variation = create_variation()
        summer = create_pricing_tier(variation=variation, price_modifier=Decimal('40.00'))
        create_pricing_tier(
            variation=variation, valid_from=date(2030, 12, 1), valid_to=date(2030, 12, 31)
        )
        create_pricing_tier(variation=variation, is_active=False)

        tiers = self.service.active_tiers({'variation_id': variation.id, 'on_date': '2030-07-15'})

        assert [t.id for t in tiers] == [summer.id]

    def test_tiers_in_range(self, create_pricing_tier):
        low = create_pricing_tier(price_modifier=Decimal('-10.00'))
        high = create_pricing_tier(price_modifier=Decimal('90.00'))
        create_pricing_tier(price_modifier=Decimal('500.00'))

        tiers = self.service.tiers_in_range({'min_modifier': '-50', 'max_modifier': '100'})

        assert [t.id for t in tiers] == [low.id, high.id]

    def test_range_bounds_must_be_ordered(self):
        with pytest.raises(ValidationFailedError) as exc_info:
            self.service.tiers_in_range({'min_modifier': '100', 'max_modifier': '100'})

        assert exc_info.value.errors == ['min_modifier must be less than max_modifier']


@pytest.mark.django_db
class TestImages:
    """Image upload and removal with a mocked S3 client."""

    def make_service(self, client=None):
        storage = ImageStorage(
            client=client or MagicMock(),
            bucket_name='venue-images',
            public_base_url='https://cdn.example.com/',
        )
        return ImageService(storage=storage), storage.client

    def test_upload_room_image(self, create_room):
        room = create_room()
        service, client = self.make_service()

        image = service.add_room_image(room.id, b'\x89PNG', 'hall.PNG', alt_text='Main hall')

        key = client.put_object.call_args.kwargs['Key']
        assert key.startswith(f"rooms/{room.id}/") and key.endswith('.png')
        assert client.put_object.call_args.kwargs['ContentType'] == 'image/png'
        assert image.url == f"https://cdn.example.com/{key}"
        assert image.room_id == room.id

    def test_unsupported_type(self, create_room):
        service, client = self.make_service()

        with pytest.raises(StorageError):
            service.add_room_image(create_room().id, b'MZ', 'setup.exe')

        client.put_object.assert_not_called()
        assert not Image.objects.exists()

    def test_empty_upload(self, create_service):
        service, _ = self.make_service()

        with pytest.raises(ValidationFailedError):
            service.add_service_image(create_service().id, b'', 'menu.jpg')

    def test_upload_failure(self, create_room):
        client = MagicMock()
        client.put_object.side_effect = ClientError({'Error': {'Code': '500'}}, 'PutObject')
        service, _ = self.make_service(client)

        with pytest.raises(StorageError):
            service.add_room_image(create_room().id, b'GIF89a', 'logo.gif')

        assert not Image.objects.exists()

    def test_delete_image(self, create_room):
        service, client = self.make_service()
        image = service.add_room_image(create_room().id, b'\xff\xd8', 'photo.jpg')

        service.delete_image(image.id)

        client.delete_object.assert_called_once_with(Bucket='venue-images', Key=image.public_id)
        assert not Image.objects.exists()


@pytest.mark.django_db
class TestReviews:
    """Review creation, verification and deletion."""

    def setup_method(self):
        self.service = ReviewService()

    def test_review_service(self, create_service, customer, customer_user):
        service = create_service()

        review = self.service.create_review({'service_id': service.id, 'rate': 5, 'comment': 'Superb'}, actor=customer_user)

        assert review.account_id == customer.id
        assert review.is_verified is False
        assert Notification.objects.filter(account=customer, title='Review Submitted').exists()

    def test_review_cancelled_event(self, create_event, customer_user):
        event = create_event(status=Event.Status.CANCELLED)

        with pytest.raises(EntityReferenceError):
            self.service.create_review({'event_id': event.id, 'rate': 3}, actor=customer_user)

    def test_verify(self, create_service, customer):
        review = self.service.create_review({'service_id': create_service().id, 'rate': 4, 'account_id': customer.id})

        verified = self.service.verify_review(review.id)

        assert verified.is_verified is True

    def test_delete_foreign_review(self, create_service, create_account, customer_user):
        other = create_account()
        review = self.service.create_review({'service_id': create_service().id, 'rate': 2, 'account_id': other.id})

        with pytest.raises(PermissionDeniedError):
            self.service.delete_review(review.id, actor=customer_user)
