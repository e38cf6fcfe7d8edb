"""
Service Catalogue Models

Service types, bookable services, their priced variations and the
dated pricing tiers attached to a variation.
"""

from django.db import models

from shared.common.mixins import TimestampMixin, ActiveMixin


class ServiceType(TimestampMixin, ActiveMixin):
    """Grouping for services (catering, decoration, photography, ...)."""

    name = models.CharField(max_length=255, unique=True)
    description = models.TextField(blank=True, null=True)

    class Meta:
        db_table = 'service_types'
        ordering = ['name']

    def __str__(self):
        return self.name


class Service(TimestampMixin, ActiveMixin):
    """
    A bookable service.

    Only active services may be booked; ``is_available`` is a softer,
    provider-controlled flag shown in listings.
    """

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    service_type = models.ForeignKey(
        ServiceType,
        on_delete=models.SET_NULL,
        related_name='services',
        blank=True,
        null=True
    )
    setup_time = models.PositiveIntegerField(
        blank=True,
        null=True,
        help_text="Setup time in minutes"
    )
    is_available = models.BooleanField(default=True)

    class Meta:
        db_table = 'services'
        ordering = ['name']
        indexes = [
            models.Index(fields=['is_active', 'is_available']),
        ]

    def __str__(self):
        return self.name


class Variation(TimestampMixin, ActiveMixin):
    """A priced option of a service. Deleting the service deletes its variations."""

    service = models.ForeignKey(
        Service,
        on_delete=models.CASCADE,
        related_name='variations'
    )
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    base_price = models.DecimalField(max_digits=10, decimal_places=2)
    duration_hours = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        blank=True,
        null=True
    )

    class Meta:
        db_table = 'variations'
        ordering = ['name']
        indexes = [
            models.Index(fields=['service', 'is_active']),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(base_price__gte=0),
                name='variation_price_non_negative'
            ),
        ]

    def __str__(self):
        return f"{self.service_id}/{self.name}"


class PricingTier(TimestampMixin, ActiveMixin):
    """
    A dated price adjustment for a variation.

    ``price_modifier`` is the amount added to (or, when negative, taken
    off) the variation's base price between ``valid_from`` and
    ``valid_to``, both inclusive. Tiers are removed with their variation.
    """

    variation = models.ForeignKey(
        Variation,
        on_delete=models.CASCADE,
        related_name='pricing_tiers'
    )
    price_modifier = models.DecimalField(max_digits=10, decimal_places=2)
    valid_from = models.DateField()
    valid_to = models.DateField()

    class Meta:
        db_table = 'pricing_tiers'
        ordering = ['valid_from', 'id']
        indexes = [
            models.Index(fields=['variation']),
            models.Index(fields=['valid_from', 'valid_to']),
            models.Index(fields=['is_active']),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(valid_to__gte=models.F('valid_from')),
                name='pricing_tier_valid_range'
            ),
        ]

    def __str__(self):
        return f"{self.variation_id}/{self.valid_from}..{self.valid_to}"
