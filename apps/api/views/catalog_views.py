# apps/api/views/catalog_views.py
"""
Catalog Views

REST API views for rooms, services, variations, pricing tiers, service
types, event types and images. Reads are open to any authenticated
account; writes need a staff or admin role.
"""

import logging

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated

from shared.common.pagination import StandardPagination
from shared.common.permissions import IsPrivileged, IsPrivilegedOrReadOnly
from shared.common.validators import Err, validate_id
from apps.core.models import ServiceType, EventType
from apps.core.services import (
    AvailabilityService,
    CatalogService,
    ImageService,
    ListingService,
    PricingTierService,
    ValidationFailedError,
)
from apps.core.services.listing_service import ROOM_INCLUDES, SERVICE_INCLUDES, VARIATION_INCLUDES
from apps.api.serializers import (
    RoomSerializer,
    ServiceSerializer,
    VariationSerializer,
    PricingTierSerializer,
    ServiceTypeSerializer,
    EventTypeSerializer,
    ImageSerializer,
    ImageUploadSerializer,
)
from .base import BaseVenueViewSet, ExceptionHandlerMixin

logger = logging.getLogger(__name__)


class ImageUploadMixin:
    """``POST {id}/images/`` handler body shared by rooms and services."""

    def upload_image(self, request, add_image, owner_id: int):
        serializer = ImageUploadSerializer(data=request.data)
        if not serializer.is_valid():
            raise ValidationFailedError([
                f"{field}: {message}"
                for field, messages in serializer.errors.items()
                for message in messages
            ])

        upload = serializer.validated_data['file']
        image = add_image(
            owner_id,
            upload.read(),
            upload.name,
            serializer.validated_data.get('alt_text'),
        )
        return self.success_response(ImageSerializer(image).data, status_code=status.HTTP_201_CREATED)


class RoomViewSet(ImageUploadMixin, BaseVenueViewSet):
    """ViewSet for rooms."""

    lookup_value_regex = r'\d+'

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.catalog = CatalogService()
        self.listing_service = ListingService()
        self.availability_service = AvailabilityService()
        self.image_service = ImageService()

    def get_permissions(self):
        if self.action == 'statistics':
            return [IsPrivileged()]
        return [IsPrivilegedOrReadOnly()]

    def list(self, request):
        """
        List rooms.

        GET /api/v1/rooms/?status=AVAILABLE&min_capacity=50
        """
        result = self.listing_service.list_rooms(request.query_params)
        return self.list_response(result, RoomSerializer, self.get_include(ROOM_INCLUDES))

    def retrieve(self, request, pk=None):
        room = self.catalog.get_room(int(pk))
        serializer = RoomSerializer(
            room, context={'request': request, 'include': self.get_include(ROOM_INCLUDES)}
        )
        return self.success_response(serializer.data)

    def create(self, request):
        room = self.catalog.create_room(request.data)
        return self.success_response(RoomSerializer(room).data, status_code=status.HTTP_201_CREATED)

    def update(self, request, pk=None):
        room = self.catalog.update_room(int(pk), request.data)
        return self.success_response(RoomSerializer(room).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk)

    def destroy(self, request, pk=None):
        """Soft delete."""
        room = self.catalog.delete_room(int(pk))
        return self.success_response(RoomSerializer(room).data)

    @action(detail=True, methods=['post'])
    def restore(self, request, pk=None):
        room = self.catalog.restore_room(int(pk))
        return self.success_response(RoomSerializer(room).data)

    @action(detail=True, methods=['get'])
    def availability(self, request, pk=None):
        """
        Check the room for a window.

        GET /api/v1/rooms/{id}/availability/?start_time=...&end_time=...
        (or ``duration_hours`` instead of ``end_time``)
        """
        params = request.query_params
        exclude = validate_id(params.get('exclude_event_id'), 'exclude_event_id')
        if isinstance(exclude, Err):
            raise ValidationFailedError(exclude.errors)

        result = self.availability_service.check_room_availability(
            int(pk),
            params.get('start_time'),
            end=params.get('end_time') or None,
            duration_hours=params.get('duration_hours') or None,
            exclude_event_id=exclude.value,
        )
        return self.success_response(result.to_dict())

    @action(detail=False, methods=['get'])
    def statistics(self, request):
        return self.success_response(self.catalog.get_room_statistics())

    @action(detail=True, methods=['post'])
    def images(self, request, pk=None):
        return self.upload_image(request, self.image_service.add_room_image, int(pk))


class ServiceViewSet(ImageUploadMixin, BaseVenueViewSet):
    """ViewSet for bookable services."""

    lookup_value_regex = r'\d+'
    permission_classes = [IsPrivilegedOrReadOnly]

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.catalog = CatalogService()
        self.listing_service = ListingService()
        self.image_service = ImageService()

    def list(self, request):
        """
        List services with rating, counts and price range.

        GET /api/v1/services/?min_rating=4&has_reviews=true
        """
        result = self.listing_service.list_services(request.query_params)
        return self.list_response(result, ServiceSerializer, self.get_include(SERVICE_INCLUDES))

    def retrieve(self, request, pk=None):
        service = self.listing_service.get_service(int(pk))
        return self.success_response(self._serialize(service))

    def create(self, request):
        service = self.catalog.create_service(request.data)
        return self.success_response(
            self._serialize(self.listing_service.get_service(service.id)),
            status_code=status.HTTP_201_CREATED
        )

    def update(self, request, pk=None):
        service = self.catalog.update_service(int(pk), request.data)
        return self.success_response(self._serialize(self.listing_service.get_service(service.id)))

    def partial_update(self, request, pk=None):
        return self.update(request, pk)

    def destroy(self, request, pk=None):
        """Soft delete."""
        service = self.catalog.delete_service(int(pk))
        return self.success_response({'id': service.id, 'is_active': service.is_active})

    @action(detail=True, methods=['post'])
    def images(self, request, pk=None):
        return self.upload_image(request, self.image_service.add_service_image, int(pk))

    def _serialize(self, service) -> dict:
        return ServiceSerializer(
            service,
            context={'request': self.request, 'include': self.get_include(SERVICE_INCLUDES)}
        ).data


class VariationViewSet(BaseVenueViewSet):
    """ViewSet for service variations."""

    lookup_value_regex = r'\d+'
    permission_classes = [IsPrivilegedOrReadOnly]

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.catalog = CatalogService()
        self.listing_service = ListingService()

    def list(self, request):
        """
        List variations; default sort ``name``.

        GET /api/v1/variations/?service_id=3
        """
        result = self.listing_service.list_variations(request.query_params)
        return self.list_response(result, VariationSerializer, self.get_include(VARIATION_INCLUDES))

    def retrieve(self, request, pk=None):
        variation = self.catalog.get_variation(int(pk))
        serializer = VariationSerializer(
            variation,
            context={'request': request, 'include': self.get_include(VARIATION_INCLUDES)}
        )
        return self.success_response(serializer.data)

    def create(self, request):
        variation = self.catalog.create_variation(request.data)
        return self.success_response(
            VariationSerializer(variation).data,
            status_code=status.HTTP_201_CREATED
        )

    def update(self, request, pk=None):
        variation = self.catalog.update_variation(int(pk), request.data)
        return self.success_response(VariationSerializer(variation).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk)

    def destroy(self, request, pk=None):
        result = self.catalog.delete_variation(int(pk), force=self.get_flag('force_delete'))
        return self.success_response(result)

    @action(detail=True, methods=['post'], url_path='toggle-status')
    def toggle_status(self, request, pk=None):
        variation = self.catalog.toggle_variation_status(int(pk))
        return self.success_response(VariationSerializer(variation).data)


class PricingTierViewSet(BaseVenueViewSet):
    """ViewSet for pricing tiers of variations."""

    lookup_value_regex = r'\d+'
    permission_classes = [IsPrivilegedOrReadOnly]

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.tiers = PricingTierService()
        self.listing_service = ListingService()

    def list(self, request):
        """
        List pricing tiers; default sort ``valid_from``.

        GET /api/v1/pricing-tiers/?variation_id=3&valid_on=2030-07-01
        """
        result = self.listing_service.list_pricing_tiers(request.query_params)
        return self.list_response(result, PricingTierSerializer)

    def retrieve(self, request, pk=None):
        tier = self.tiers.get_tier(int(pk))
        return self.success_response(PricingTierSerializer(tier).data)

    def create(self, request):
        tier = self.tiers.create_tier(request.data)
        return self.success_response(
            PricingTierSerializer(tier).data,
            status_code=status.HTTP_201_CREATED
        )

    def update(self, request, pk=None):
        tier = self.tiers.update_tier(int(pk), request.data)
        return self.success_response(PricingTierSerializer(tier).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk)

    def destroy(self, request, pk=None):
        return self.success_response(self.tiers.delete_tier(int(pk)))

    @action(detail=True, methods=['post'], url_path='toggle-status')
    def toggle_status(self, request, pk=None):
        tier = self.tiers.toggle_tier_status(int(pk))
        return self.success_response(PricingTierSerializer(tier).data)

    @action(detail=False, methods=['get'])
    def active(self, request):
        """GET /api/v1/pricing-tiers/active/?variation_id=3&on_date=2030-07-01"""
        tiers = self.tiers.active_tiers(request.query_params)
        return self.success_response(PricingTierSerializer(tiers, many=True).data)

    @action(detail=False, methods=['get'], url_path='range', url_name='range')
    def modifier_range(self, request):
        """GET /api/v1/pricing-tiers/range/?min_modifier=-50&max_modifier=100"""
        tiers = self.tiers.tiers_in_range(request.query_params)
        return self.success_response(PricingTierSerializer(tiers, many=True).data)


class ServiceTypeViewSet(ExceptionHandlerMixin, viewsets.ModelViewSet):
    """CRUD for service types."""

    queryset = ServiceType.objects.all().order_by('name', 'id')
    serializer_class = ServiceTypeSerializer
    permission_classes = [IsPrivilegedOrReadOnly]
    pagination_class = StandardPagination


class EventTypeViewSet(ExceptionHandlerMixin, viewsets.ModelViewSet):
    """CRUD for event types."""

    queryset = EventType.objects.all().order_by('name', 'id')
    serializer_class = EventTypeSerializer
    permission_classes = [IsPrivilegedOrReadOnly]
    pagination_class = StandardPagination


class ImageViewSet(BaseVenueViewSet):
    """Image removal; the stored object is deleted first."""

    lookup_value_regex = r'\d+'
    permission_classes = [IsAuthenticated, IsPrivileged]

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.image_service = ImageService()

    def destroy(self, request, pk=None):
        self.image_service.delete_image(int(pk))
        return self.success_response({'deleted_image_id': int(pk)})
