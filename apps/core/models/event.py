"""
Event Models

Events occupy a room for a time window; each EventService row books a
service variation for its own window.
"""

from datetime import datetime, time, timedelta
from decimal import Decimal

from django.db import models
from django.utils import timezone

from shared.common.mixins import TimestampMixin, ActiveMixin


class EventType(TimestampMixin, ActiveMixin):
    """Kind of event (wedding, conference, ...)."""

    name = models.CharField(max_length=255, unique=True)
    description = models.TextField(blank=True, null=True)

    class Meta:
        db_table = 'event_types'
        ordering = ['name']

    def __str__(self):
        return self.name


class Event(TimestampMixin):
    """
    A booking of a room by an account.

    Created PENDING; confirmed manually or when its payment completes.
    While CONFIRMED or IN_PROGRESS its ``[start_time, end_time)`` window
    excludes every other blocking event in the same room.
    """

    class Status(models.TextChoices):
        PENDING = 'PENDING', 'Pending'
        CONFIRMED = 'CONFIRMED', 'Confirmed'
        IN_PROGRESS = 'IN_PROGRESS', 'In Progress'
        COMPLETED = 'COMPLETED', 'Completed'
        CANCELLED = 'CANCELLED', 'Cancelled'
        RESCHEDULED = 'RESCHEDULED', 'Rescheduled'

    # Targets reachable through the set-status operation, per source state.
    STATUS_TRANSITIONS = {
        Status.PENDING: {Status.CONFIRMED, Status.CANCELLED},
        Status.CONFIRMED: {
            Status.CONFIRMED,
            Status.IN_PROGRESS,
            Status.CANCELLED,
            Status.COMPLETED,
        },
        Status.IN_PROGRESS: {Status.COMPLETED},
        Status.RESCHEDULED: {Status.CONFIRMED, Status.CANCELLED},
        Status.COMPLETED: set(),
        Status.CANCELLED: set(),
    }

    name = models.CharField(max_length=1024)
    description = models.TextField(blank=True, null=True)
    event_date = models.DateField()
    start_time = models.DateTimeField(blank=True, null=True)
    end_time = models.DateTimeField(blank=True, null=True)

    # Pricing
    base_cost = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        help_text="Caller-supplied amount added on top of room and services"
    )
    estimated_cost = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00')
    )
    final_cost = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        blank=True,
        null=True
    )
    room_service_fee = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        blank=True,
        null=True
    )

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True
    )

    # References
    account = models.ForeignKey(
        'core.Account',
        on_delete=models.SET_NULL,
        related_name='events',
        blank=True,
        null=True
    )
    room = models.ForeignKey(
        'core.Room',
        on_delete=models.SET_NULL,
        related_name='events',
        blank=True,
        null=True
    )
    event_type = models.ForeignKey(
        EventType,
        on_delete=models.SET_NULL,
        related_name='events',
        blank=True,
        null=True
    )

    class Meta:
        db_table = 'events'
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['room', 'start_time', 'end_time']),
            models.Index(fields=['account', 'start_time']),
            models.Index(fields=['status', 'start_time']),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(start_time__isnull=True) |
                    models.Q(end_time__isnull=True) |
                    models.Q(end_time__gt=models.F('start_time'))
                ),
                name='event_end_after_start'
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.status})"

    @classmethod
    def get_blocking_statuses(cls):
        """Statuses whose windows exclude other events in the same room."""
        return [cls.Status.CONFIRMED, cls.Status.IN_PROGRESS]

    @property
    def duration_hours(self):
        """Booked duration in hours, or None without a window."""
        if not self.start_time or not self.end_time:
            return None
        seconds = Decimal((self.end_time - self.start_time).total_seconds())
        return seconds / Decimal(3600)

    @property
    def hours_until_start(self) -> float:
        """Hours until the event starts; falls back to midnight of event_date."""
        start = self.start_time
        if start is None:
            start = timezone.make_aware(datetime.combine(self.event_date, time.min))
        return (start - timezone.now()).total_seconds() / 3600

    def can_transition_to(self, status: str) -> bool:
        return status in self.STATUS_TRANSITIONS.get(self.status, set())


class EventService(TimestampMixin):
    """
    A service booked for an event (booking line item).

    A CONFIRMED line item occupies its variation for
    ``[scheduled_time, scheduled_time + duration_hours)``.
    """

    class Status(models.TextChoices):
        CONFIRMED = 'CONFIRMED', 'Confirmed'
        PENDING = 'PENDING', 'Pending'
        CANCELLED = 'CANCELLED', 'Cancelled'

    event = models.ForeignKey(
        Event,
        on_delete=models.CASCADE,
        related_name='event_services'
    )
    service = models.ForeignKey(
        'core.Service',
        on_delete=models.SET_NULL,
        related_name='event_services',
        blank=True,
        null=True
    )
    variation = models.ForeignKey(
        'core.Variation',
        on_delete=models.SET_NULL,
        related_name='event_services',
        blank=True,
        null=True
    )
    quantity = models.PositiveIntegerField(default=1)
    custom_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        blank=True,
        null=True
    )
    notes = models.TextField(blank=True, null=True)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.CONFIRMED,
        db_index=True
    )

    # Booking window
    scheduled_time = models.DateTimeField(blank=True, null=True)
    duration_hours = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        blank=True,
        null=True
    )
    end_time = models.DateTimeField(blank=True, null=True, editable=False)

    class Meta:
        db_table = 'event_services'
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['variation', 'status', 'scheduled_time', 'end_time']),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name='event_service_quantity_positive'
            ),
        ]

    def __str__(self):
        return f"EventService {self.pk} for event {self.event_id}"

    def save(self, *args, **kwargs):
        self.end_time = self.compute_end_time()
        if 'update_fields' in kwargs and kwargs['update_fields'] is not None:
            kwargs['update_fields'] = set(kwargs['update_fields']) | {'end_time'}
        super().save(*args, **kwargs)

    def compute_end_time(self):
        if self.scheduled_time and self.duration_hours:
            return self.scheduled_time + timedelta(hours=float(self.duration_hours))
        return None

    @property
    def unit_price(self) -> Decimal:
        """Custom price when set, otherwise the variation's base price."""
        if self.custom_price is not None:
            return self.custom_price
        if self.variation is not None:
            return self.variation.base_price
        return Decimal('0.00')
