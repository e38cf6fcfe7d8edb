# shared/common/mixins.py
"""
Reusable Model Mixins
"""

from django.db import models
from django.utils import timezone


class TimestampMixin(models.Model):
    """
    Mixin that provides created_at and updated_at timestamp fields.
    """

    created_at = models.DateTimeField(
        default=timezone.now,
        db_index=True,
        help_text="When this record was created"
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When this record was last updated"
    )

    class Meta:
        abstract = True


class ActiveMixin(models.Model):
    """
    Mixin for master data that is deactivated rather than deleted.
    """

    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Inactive records cannot be booked"
    )

    class Meta:
        abstract = True

    def deactivate(self):
        """Soft delete: mark the record inactive."""
        self.is_active = False
        self.save(update_fields=['is_active', 'updated_at'])

    def activate(self):
        """Restore a deactivated record."""
        self.is_active = True
        self.save(update_fields=['is_active', 'updated_at'])
