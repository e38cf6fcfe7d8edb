"""
Account Model

Customers, providers and staff known to the venue.
"""

from django.db import models

from shared.common.mixins import TimestampMixin, ActiveMixin


class Account(TimestampMixin, ActiveMixin):
    """An account that can own events, pay invoices and write reviews."""

    class Role(models.TextChoices):
        ADMIN = 'ADMIN', 'Admin'
        CUSTOMER = 'CUSTOMER', 'Customer'
        PROVIDER = 'PROVIDER', 'Provider'
        STAFF = 'STAFF', 'Staff'

    email = models.EmailField(unique=True)
    full_name = models.CharField(max_length=255)
    phone = models.CharField(max_length=20, blank=True, null=True)
    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.CUSTOMER
    )

    class Meta:
        db_table = 'accounts'
        ordering = ['full_name']

    def __str__(self):
        return f"{self.full_name} <{self.email}>"

    @property
    def is_privileged(self) -> bool:
        return self.role in (self.Role.ADMIN, self.Role.STAFF)
