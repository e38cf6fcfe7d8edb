"""
Room and Image Models
"""

from django.db import models

from shared.common.mixins import TimestampMixin, ActiveMixin


class Room(TimestampMixin, ActiveMixin):
    """
    A bookable room.

    Only active rooms in AVAILABLE status may be booked.
    """

    class Status(models.TextChoices):
        AVAILABLE = 'AVAILABLE', 'Available'
        OCCUPIED = 'OCCUPIED', 'Occupied'
        MAINTENANCE = 'MAINTENANCE', 'Maintenance'
        RESERVED = 'RESERVED', 'Reserved'

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    amenities = models.JSONField(default=list, blank=True)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.AVAILABLE,
        db_index=True
    )
    guest_capacity = models.PositiveIntegerField(default=0)
    base_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        blank=True,
        null=True
    )
    hourly_rate = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        blank=True,
        null=True
    )

    class Meta:
        db_table = 'rooms'
        ordering = ['name']

    def __str__(self):
        return self.name

    @property
    def is_bookable(self) -> bool:
        return self.is_active and self.status == self.Status.AVAILABLE


class Image(TimestampMixin):
    """An uploaded image attached to a room or a service."""

    url = models.URLField(max_length=1024)
    public_id = models.CharField(max_length=512, unique=True)
    alt_text = models.CharField(max_length=255, blank=True, null=True)
    room = models.ForeignKey(
        Room,
        on_delete=models.CASCADE,
        related_name='images',
        blank=True,
        null=True
    )
    service = models.ForeignKey(
        'core.Service',
        on_delete=models.CASCADE,
        related_name='images',
        blank=True,
        null=True
    )

    class Meta:
        db_table = 'images'
        ordering = ['created_at']

    def __str__(self):
        return self.public_id
