# apps/core/services/catalog_service.py
"""
Catalog Service

Master data writes: rooms, services and variations. Rooms and services
are soft-deleted (deactivated) so existing events keep their references;
variations are hard-deleted only when no pricing tier or booking refers
to them, unless forced.
"""

import logging
from typing import Dict, Any, Mapping

from django.db import transaction
from django.db.models import Count, Q

from shared.common.validators import Err
from apps.core.models import Room, Service, ServiceType, Variation, EventService, Event
from .validation import validate_room_data, validate_service_data, validate_variation_data

logger = logging.getLogger(__name__)


class CatalogService:
    """
    Service for venue master data.

    Handles:
    - Room CRUD, soft delete, restore and statistics
    - Service CRUD and soft delete
    - Variation CRUD, status toggle and guarded delete
    """

    # ==========================================================================
    # Rooms
    # ==========================================================================

    def get_room(self, room_id: int) -> Room:
        from . import NotFoundError

        room = Room.objects.filter(id=room_id).first()
        if room is None:
            raise NotFoundError('Room', room_id)
        return room

    def create_room(self, data: Mapping) -> Room:
        cleaned = self._validated(validate_room_data(data))
        amenities = self._amenities(data)

        room = Room.objects.create(
            name=cleaned['name'],
            description=cleaned.get('description'),
            status=cleaned.get('status') or Room.Status.AVAILABLE,
            guest_capacity=cleaned.get('guest_capacity') or 0,
            base_price=cleaned.get('base_price'),
            hourly_rate=cleaned.get('hourly_rate'),
            amenities=amenities if amenities is not None else [],
        )
        logger.info(f"Created room {room.id}")
        return room

    def update_room(self, room_id: int, data: Mapping) -> Room:
        cleaned = self._validated(validate_room_data(data, partial=True))
        amenities = self._amenities(data)

        room = self.get_room(room_id)
        for field, value in cleaned.items():
            setattr(room, field, value)
        if amenities is not None:
            room.amenities = amenities
        room.save()

        logger.info(f"Updated room {room_id}", extra={'fields': sorted(cleaned)})
        return room

    def delete_room(self, room_id: int) -> Room:
        """Soft delete: the room is deactivated, its events keep the reference."""
        room = self.get_room(room_id)
        room.deactivate()
        logger.info(f"Deactivated room {room_id}")
        return room

    def restore_room(self, room_id: int) -> Room:
        room = self.get_room(room_id)
        room.activate()
        logger.info(f"Restored room {room_id}")
        return room

    def get_room_statistics(self) -> Dict[str, Any]:
        """Room counts by status and activity."""
        totals = Room.objects.aggregate(
            total=Count('id'),
            active=Count('id', filter=Q(is_active=True)),
            inactive=Count('id', filter=Q(is_active=False)),
        )
        by_status = {status: 0 for status in Room.Status.values}
        for row in Room.objects.filter(is_active=True).values('status').annotate(count=Count('id')):
            by_status[row['status']] = row['count']

        return {
            'total_rooms': totals['total'],
            'active_rooms': totals['active'],
            'inactive_rooms': totals['inactive'],
            'by_status': by_status,
        }

    # ==========================================================================
    # Services
    # ==========================================================================

    def get_service(self, service_id: int) -> Service:
        from . import NotFoundError

        service = Service.objects.filter(id=service_id).first()
        if service is None:
            raise NotFoundError('Service', service_id)
        return service

    def create_service(self, data: Mapping) -> Service:
        cleaned = self._validated(validate_service_data(data))

        service = Service.objects.create(
            name=cleaned['name'],
            description=cleaned.get('description'),
            service_type=self._service_type(cleaned.get('service_type_id')),
            setup_time=cleaned.get('setup_time'),
            is_available=cleaned.get('is_available', True),
        )
        logger.info(f"Created service {service.id}")
        return service

    def update_service(self, service_id: int, data: Mapping) -> Service:
        cleaned = self._validated(validate_service_data(data, partial=True))

        service = self.get_service(service_id)
        if 'service_type_id' in cleaned:
            service.service_type = self._service_type(cleaned.pop('service_type_id'))
        for field, value in cleaned.items():
            setattr(service, field, value)
        service.save()

        logger.info(f"Updated service {service_id}")
        return service

    def delete_service(self, service_id: int) -> Service:
        """Soft delete: inactive services cannot be booked."""
        service = self.get_service(service_id)
        service.deactivate()
        logger.info(f"Deactivated service {service_id}")
        return service

    # ==========================================================================
    # Variations
    # ==========================================================================

    def get_variation(self, variation_id: int) -> Variation:
        from . import NotFoundError

        variation = Variation.objects.select_related('service').filter(id=variation_id).first()
        if variation is None:
            raise NotFoundError('Variation', variation_id)
        return variation

    def create_variation(self, data: Mapping) -> Variation:
        from . import EntityReferenceError, ValidationFailedError
        from shared.common.validators import validate_id

        service_result = validate_id(data.get('service_id'), 'service_id', required=True)
        if isinstance(service_result, Err):
            raise ValidationFailedError(service_result.errors)
        cleaned = self._validated(validate_variation_data(data))

        service = Service.objects.filter(id=service_result.value, is_active=True).first()
        if service is None:
            raise EntityReferenceError("Service not found or inactive", field='service_id')

        variation = Variation.objects.create(service=service, **cleaned)
        logger.info(f"Created variation {variation.id} for service {service.id}")
        return variation

    def update_variation(self, variation_id: int, data: Mapping) -> Variation:
        cleaned = self._validated(validate_variation_data(data, partial=True))

        variation = self.get_variation(variation_id)
        for field, value in cleaned.items():
            setattr(variation, field, value)
        variation.save()

        logger.info(f"Updated variation {variation_id}")
        return variation

    def toggle_variation_status(self, variation_id: int) -> Variation:
        variation = self.get_variation(variation_id)
        if variation.is_active:
            variation.deactivate()
        else:
            variation.activate()
        logger.info(f"Variation {variation_id} is_active={variation.is_active}")
        return variation

    @transaction.atomic
    def delete_variation(self, variation_id: int, force: bool = False) -> Dict[str, Any]:
        """
        Delete a variation.

        Refused while pricing tiers or event services refer to it, unless
        ``force``; forcing deletes the tiers and detaches the bookings
        (their variation becomes null).
        """
        from . import DependencyError

        variation = self.get_variation(variation_id)
        tiers_count = variation.pricing_tiers.count()
        bookings = EventService.objects.filter(variation=variation)
        active_bookings = bookings.exclude(
            event__status__in=[Event.Status.CANCELLED, Event.Status.COMPLETED]
        ).count()
        total_bookings = bookings.count()

        if (tiers_count or total_bookings) and not force:
            logger.warning(f"Refused to delete variation {variation_id} with dependents")
            raise DependencyError(
                f"Cannot delete variation. It has {tiers_count} pricing tiers and "
                f"{total_bookings} bookings ({active_bookings} active). "
                f"Use force_delete to delete anyway.",
                {
                    'pricing_tiers_count': tiers_count,
                    'bookings_count': total_bookings,
                    'active_bookings_count': active_bookings,
                }
            )

        deleted_tiers, _ = variation.pricing_tiers.all().delete()
        variation.delete()
        logger.info(f"Deleted variation {variation_id}", extra={'force': force})
        return {
            'deleted_variation_id': variation_id,
            'deleted_pricing_tiers': deleted_tiers,
            'detached_bookings': total_bookings,
        }

    # ==========================================================================
    # Helpers
    # ==========================================================================

    @staticmethod
    def _validated(result) -> Dict[str, Any]:
        from . import ValidationFailedError

        if isinstance(result, Err):
            raise ValidationFailedError(result.errors)
        return result.value

    @staticmethod
    def _amenities(data: Mapping):
        from . import ValidationFailedError

        if 'amenities' not in data:
            return None
        amenities = data.get('amenities') or []
        if not isinstance(amenities, list) or not all(isinstance(a, str) for a in amenities):
            raise ValidationFailedError(["amenities must be a list of strings"])
        return [a.strip() for a in amenities if a.strip()]

    @staticmethod
    def _service_type(service_type_id):
        from . import EntityReferenceError

        if not service_type_id:
            return None
        service_type = ServiceType.objects.filter(id=service_type_id, is_active=True).first()
        if service_type is None:
            raise EntityReferenceError("Service type not found", field='service_type_id')
        return service_type
