# apps/core/filters.py
"""
Listing Filters

Django Filter classes for events, rooms, services, variations, pricing
tiers, invoices, payments and reviews. Range filters on derived values (prices, ratings)
expect the listing service to annotate the queryset first.
"""

import django_filters
from django.db.models import Q

from apps.core.models import (
    Event,
    Room,
    Service,
    Variation,
    PricingTier,
    Invoice,
    Payment,
    Review,
)


class SearchFilterMixin:
    """Case-insensitive substring search across ``search_fields``."""

    search_fields = ()

    def filter_search(self, queryset, name, value):
        if not value:
            return queryset
        query = Q()
        for field in self.search_fields:
            query |= Q(**{f'{field}__icontains': value})
        return queryset.filter(query)


class EventFilter(SearchFilterMixin, django_filters.FilterSet):
    """Filter for event listings."""

    search_fields = ('name', 'description')

    status = django_filters.ChoiceFilter(choices=Event.Status.choices)
    status_in = django_filters.BaseInFilter(field_name='status')
    room_id = django_filters.NumberFilter()
    account_id = django_filters.NumberFilter()
    event_type_id = django_filters.NumberFilter()

    # Window
    start_from = django_filters.IsoDateTimeFilter(field_name='start_time', lookup_expr='gte')
    start_to = django_filters.IsoDateTimeFilter(field_name='start_time', lookup_expr='lte')
    date_from = django_filters.DateFilter(field_name='event_date', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='event_date', lookup_expr='lte')

    # Cost
    min_cost = django_filters.NumberFilter(field_name='estimated_cost', lookup_expr='gte')
    max_cost = django_filters.NumberFilter(field_name='estimated_cost', lookup_expr='lte')

    search = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = Event
        fields = []


class RoomFilter(SearchFilterMixin, django_filters.FilterSet):
    """Filter for room listings."""

    search_fields = ('name', 'description')

    status = django_filters.ChoiceFilter(choices=Room.Status.choices)
    is_active = django_filters.BooleanFilter()
    min_capacity = django_filters.NumberFilter(field_name='guest_capacity', lookup_expr='gte')
    max_capacity = django_filters.NumberFilter(field_name='guest_capacity', lookup_expr='lte')
    min_price = django_filters.NumberFilter(field_name='base_price', lookup_expr='gte')
    max_price = django_filters.NumberFilter(field_name='base_price', lookup_expr='lte')
    search = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = Room
        fields = []


class ServiceFilter(SearchFilterMixin, django_filters.FilterSet):
    """
    Filter for service listings.

    ``min_price``/``max_price`` and the rating filters work on the
    ``lowest_price``, ``highest_price``, ``rating_value`` and
    ``review_count`` annotations.
    """

    search_fields = ('name', 'description')

    is_active = django_filters.BooleanFilter()
    is_available = django_filters.BooleanFilter()
    service_type_id = django_filters.NumberFilter()
    created_from = django_filters.IsoDateTimeFilter(field_name='created_at', lookup_expr='gte')
    created_to = django_filters.IsoDateTimeFilter(field_name='created_at', lookup_expr='lte')
    min_setup_time = django_filters.NumberFilter(field_name='setup_time', lookup_expr='gte')
    max_setup_time = django_filters.NumberFilter(field_name='setup_time', lookup_expr='lte')
    min_price = django_filters.NumberFilter(field_name='lowest_price', lookup_expr='gte')
    max_price = django_filters.NumberFilter(field_name='highest_price', lookup_expr='lte')
    min_rating = django_filters.NumberFilter(field_name='rating_value', lookup_expr='gte')
    max_rating = django_filters.NumberFilter(field_name='rating_value', lookup_expr='lte')
    has_reviews = django_filters.BooleanFilter(method='filter_has_reviews')
    search = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = Service
        fields = []

    def filter_has_reviews(self, queryset, name, value):
        if value is None:
            return queryset
        if value:
            return queryset.filter(review_count__gt=0)
        return queryset.filter(review_count=0)


class VariationFilter(SearchFilterMixin, django_filters.FilterSet):
    """Filter for variation listings."""

    search_fields = ('name', 'description')

    service_id = django_filters.NumberFilter()
    is_active = django_filters.BooleanFilter()
    min_price = django_filters.NumberFilter(field_name='base_price', lookup_expr='gte')
    max_price = django_filters.NumberFilter(field_name='base_price', lookup_expr='lte')
    min_duration = django_filters.NumberFilter(field_name='duration_hours', lookup_expr='gte')
    max_duration = django_filters.NumberFilter(field_name='duration_hours', lookup_expr='lte')
    search = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = Variation
        fields = []


class PricingTierFilter(django_filters.FilterSet):
    """Filter for pricing tier listings; ``valid_on`` keeps tiers covering that day."""

    variation_id = django_filters.NumberFilter()
    is_active = django_filters.BooleanFilter()
    min_modifier = django_filters.NumberFilter(field_name='price_modifier', lookup_expr='gte')
    max_modifier = django_filters.NumberFilter(field_name='price_modifier', lookup_expr='lte')
    valid_on = django_filters.DateFilter(method='filter_valid_on')

    class Meta:
        model = PricingTier
        fields = []

    def filter_valid_on(self, queryset, name, value):
        return queryset.filter(valid_from__lte=value, valid_to__gte=value)


class InvoiceFilter(django_filters.FilterSet):
    """Filter for invoice listings."""

    status = django_filters.ChoiceFilter(choices=Invoice.Status.choices)
    event_id = django_filters.NumberFilter()
    issued_from = django_filters.DateFilter(field_name='issue_date', lookup_expr='gte')
    issued_to = django_filters.DateFilter(field_name='issue_date', lookup_expr='lte')
    invoice_number = django_filters.CharFilter(lookup_expr='icontains')

    class Meta:
        model = Invoice
        fields = []


class PaymentFilter(django_filters.FilterSet):
    """Filter for payment listings."""

    status = django_filters.ChoiceFilter(choices=Payment.Status.choices)
    method = django_filters.ChoiceFilter(choices=Payment.Method.choices)
    event_id = django_filters.NumberFilter()
    account_id = django_filters.NumberFilter()
    invoice_id = django_filters.NumberFilter()

    class Meta:
        model = Payment
        fields = []


class ReviewFilter(django_filters.FilterSet):
    """Filter for review listings."""

    service_id = django_filters.NumberFilter()
    event_id = django_filters.NumberFilter()
    account_id = django_filters.NumberFilter()
    min_rate = django_filters.NumberFilter(field_name='rate', lookup_expr='gte')
    max_rate = django_filters.NumberFilter(field_name='rate', lookup_expr='lte')
    is_verified = django_filters.BooleanFilter()

    class Meta:
        model = Review
        fields = []
