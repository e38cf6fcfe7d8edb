# apps/core/services/listing_service.py
"""
Listing Service

Filtered, sorted, paginated reads over events, rooms, services,
variations and pricing tiers. Derived values (average rating, counts,
price range) are computed at read time and never stored.
"""

import logging
from typing import Any, Dict, List, Mapping, Set, Type

import django_filters
from django.db.models import Avg, Count, Max, Min, OuterRef, Q, QuerySet, Subquery, Value, FloatField
from django.db.models.functions import Coalesce

from shared.common.pagination import build_pagination_meta
from shared.common.validators import Err, validate_pagination, validate_sort
from apps.core.filters import EventFilter, RoomFilter, ServiceFilter, VariationFilter, PricingTierFilter
from apps.core.models import Event, Room, Service, Variation, PricingTier, Review

logger = logging.getLogger(__name__)

EVENT_SORT_FIELDS = [
    'name', 'start_time', 'end_time', 'estimated_cost', 'final_cost',
    'room_service_fee', 'created_at', 'status',
]
ROOM_SORT_FIELDS = ['name', 'status', 'guest_capacity', 'base_price', 'hourly_rate', 'created_at']
SERVICE_SORT_FIELDS = ['name', 'created_at', 'setup_time', 'rating_value', 'lowest_price']
VARIATION_SORT_FIELDS = ['name', 'base_price', 'duration_hours', 'created_at']
PRICING_TIER_SORT_FIELDS = ['valid_from', 'valid_to', 'price_modifier', 'created_at']

EVENT_INCLUDES = {'room', 'account', 'event_type', 'services', 'invoice'}
ROOM_INCLUDES = {'images', 'events'}
SERVICE_INCLUDES = {'variations', 'images', 'service_type'}
VARIATION_INCLUDES = {'service'}

TRUE_VALUES = ('1', 'true', 'yes', 'on')


def is_truthy(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or '').strip().lower() in TRUE_VALUES


def parse_include(value: Any, allowed: Set[str]) -> Set[str]:
    """``include=room,account`` (or a list) restricted to ``allowed``."""
    if not value:
        return set()
    if isinstance(value, str):
        names = value.split(',')
    else:
        names = list(value)
    return {name.strip() for name in names if name and name.strip() in allowed}


def round_rating(value) -> float:
    """Mean rating rounded to one decimal; 0 without reviews."""
    if value is None:
        return 0.0
    return round(float(value), 1)


class ListingService:
    """
    Service for list endpoints.

    Handles:
    - Pagination and sort whitelists
    - Filtering (FilterSets from ``apps.core.filters``)
    - Optional eager loading via include flags
    - Derived aggregates
    """

    # ==========================================================================
    # Events
    # ==========================================================================

    def list_events(self, params: Mapping, base_queryset: QuerySet = None) -> Dict[str, Any]:
        """List events; default sort ``created_at``."""
        include = parse_include(params.get('include'), EVENT_INCLUDES)

        queryset = base_queryset if base_queryset is not None else Event.objects.all()
        queryset = queryset.annotate(
            services_count=Count('event_services', distinct=True),
        )
        queryset = self._apply_event_includes(queryset, include)
        queryset = self._filter(EventFilter, params, queryset)

        return self._paginate(queryset, params, EVENT_SORT_FIELDS, 'created_at')

    @staticmethod
    def _apply_event_includes(queryset: QuerySet, include: Set[str]) -> QuerySet:
        related = [name for name in ('room', 'account', 'event_type') if name in include]
        if 'invoice' in include:
            related.append('invoice')
        if related:
            queryset = queryset.select_related(*related)
        if 'services' in include:
            queryset = queryset.prefetch_related(
                'event_services__service', 'event_services__variation'
            )
        return queryset

    # ==========================================================================
    # Rooms
    # ==========================================================================

    def list_rooms(self, params: Mapping) -> Dict[str, Any]:
        """List rooms; inactive rooms only with ``include_inactive``."""
        include = parse_include(params.get('include'), ROOM_INCLUDES)

        queryset = Room.objects.annotate(
            image_count=Count('images', distinct=True),
            events_count=Count('events', distinct=True),
        )
        queryset = self._active_only(queryset, params)
        if 'images' in include:
            queryset = queryset.prefetch_related('images')
        if 'events' in include:
            queryset = queryset.prefetch_related('events')
        queryset = self._filter(RoomFilter, params, queryset)

        return self._paginate(queryset, params, ROOM_SORT_FIELDS, 'created_at')

    # ==========================================================================
    # Services
    # ==========================================================================

    def service_queryset(self) -> QuerySet:
        """Services annotated with rating, counts and active price range."""
        rating = (
            Review.objects.filter(service=OuterRef('pk'))
            .order_by()
            .values('service')
            .annotate(avg=Avg('rate'))
            .values('avg')
        )
        reviews = (
            Review.objects.filter(service=OuterRef('pk'))
            .order_by()
            .values('service')
            .annotate(total=Count('id'))
            .values('total')
        )
        active_variations = Q(variations__is_active=True)
        return Service.objects.annotate(
            rating_value=Coalesce(
                Subquery(rating, output_field=FloatField()),
                Value(0.0),
            ),
            review_count=Coalesce(Subquery(reviews), Value(0)),
            variation_count=Count('variations', filter=active_variations, distinct=True),
            image_count=Count('images', distinct=True),
            lowest_price=Min('variations__base_price', filter=active_variations),
            highest_price=Max('variations__base_price', filter=active_variations),
        )

    def list_services(self, params: Mapping) -> Dict[str, Any]:
        """List services with derived fields; default sort ``created_at``."""
        include = parse_include(params.get('include'), SERVICE_INCLUDES)

        queryset = self._active_only(self.service_queryset(), params)
        if 'service_type' in include:
            queryset = queryset.select_related('service_type')
        if 'variations' in include:
            queryset = queryset.prefetch_related('variations')
        if 'images' in include:
            queryset = queryset.prefetch_related('images')
        queryset = self._filter(ServiceFilter, params, queryset)

        result = self._paginate(queryset, params, SERVICE_SORT_FIELDS, 'created_at')
        for service in result['items']:
            service.average_rating = round_rating(service.rating_value if service.review_count else None)
        return result

    def get_service(self, service_id: int) -> Service:
        from . import NotFoundError

        service = (
            self.service_queryset()
            .select_related('service_type')
            .prefetch_related('variations', 'images')
            .filter(id=service_id)
            .first()
        )
        if service is None:
            raise NotFoundError('Service', service_id)
        service.average_rating = round_rating(service.rating_value if service.review_count else None)
        return service

    # ==========================================================================
    # Variations
    # ==========================================================================

    def list_variations(self, params: Mapping) -> Dict[str, Any]:
        """List variations; default sort ``name``."""
        include = parse_include(params.get('include'), VARIATION_INCLUDES)

        queryset = Variation.objects.annotate(
            bookings_count=Count('event_services', distinct=True),
            pricing_tiers_count=Count('pricing_tiers', distinct=True),
        )
        queryset = self._active_only(queryset, params)
        if 'service' in include:
            queryset = queryset.select_related('service')
        queryset = self._filter(VariationFilter, params, queryset)

        return self._paginate(queryset, params, VARIATION_SORT_FIELDS, 'name')

    def list_pricing_tiers(self, params: Mapping) -> Dict[str, Any]:
        """List pricing tiers, inactive ones included; default sort ``valid_from``."""
        queryset = PricingTier.objects.select_related('variation')
        queryset = self._filter(PricingTierFilter, params, queryset)
        return self._paginate(queryset, params, PRICING_TIER_SORT_FIELDS, 'valid_from')

    # ==========================================================================
    # Helpers
    # ==========================================================================

    @staticmethod
    def _active_only(queryset: QuerySet, params: Mapping) -> QuerySet:
        if is_truthy(params.get('include_inactive')) or params.get('is_active') not in (None, ''):
            return queryset
        return queryset.filter(is_active=True)

    @staticmethod
    def _filter(
        filterset_class: Type[django_filters.FilterSet],
        params: Mapping,
        queryset: QuerySet
    ) -> QuerySet:
        from . import ValidationFailedError

        filterset = filterset_class(data=params, queryset=queryset)
        if not filterset.is_valid():
            errors = [
                f"{field}: {message}"
                for field, messages in filterset.errors.items()
                for message in messages
            ]
            raise ValidationFailedError(errors)
        return filterset.qs

    @staticmethod
    def _paginate(
        queryset: QuerySet,
        params: Mapping,
        sort_fields: List[str],
        default_sort: str
    ) -> Dict[str, Any]:
        from . import ValidationFailedError

        paging = validate_pagination(params.get('page'), params.get('limit'))
        if isinstance(paging, Err):
            raise ValidationFailedError(paging.errors)
        page, limit = paging.value['page'], paging.value['limit']

        sort = validate_sort(
            params.get('sort_by'), params.get('sort_order'), sort_fields, default_sort
        ).value
        prefix = '-' if sort['sort_order'] == 'desc' else ''
        queryset = queryset.order_by(f"{prefix}{sort['sort_by']}", f"{prefix}id")

        total = queryset.count()
        offset = (page - 1) * limit
        items = list(queryset[offset:offset + limit])

        return {
            'items': items,
            'pagination': build_pagination_meta(page, limit, total),
            'sort': sort,
        }
