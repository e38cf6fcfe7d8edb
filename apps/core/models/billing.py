"""
Billing Models

One invoice per event, its line items, and payments against it.
"""

import uuid
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone

from shared.common.mixins import TimestampMixin


def default_due_date():
    days = settings.VENUE_BOOKING['INVOICE_DUE_DAYS']
    return timezone.localdate() + timedelta(days=days)


class Invoice(TimestampMixin):
    """Invoice for an event. Its total tracks the event's estimated cost."""

    class Status(models.TextChoices):
        PENDING = 'PENDING', 'Pending'
        PAID = 'PAID', 'Paid'
        OVERDUE = 'OVERDUE', 'Overdue'
        CANCELLED = 'CANCELLED', 'Cancelled'
        REFUNDED = 'REFUNDED', 'Refunded'

    invoice_number = models.CharField(max_length=50, unique=True, db_index=True)
    event = models.OneToOneField(
        'core.Event',
        on_delete=models.CASCADE,
        related_name='invoice'
    )
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    tax_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00')
    )
    discount_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00')
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True
    )
    issue_date = models.DateField(default=timezone.localdate)
    due_date = models.DateField(default=default_due_date)
    paid_date = models.DateTimeField(blank=True, null=True)
    notes = models.TextField(blank=True, null=True)

    class Meta:
        db_table = 'invoices'
        ordering = ['-issue_date', '-created_at']

    def __str__(self):
        return f"{self.invoice_number}: {self.total_amount}"

    def save(self, *args, **kwargs):
        if not self.invoice_number:
            self.invoice_number = self.generate_invoice_number()
        super().save(*args, **kwargs)

    @staticmethod
    def generate_invoice_number() -> str:
        """Generate unique invoice number."""
        date_str = timezone.localdate().strftime('%Y%m%d')
        return f"INV-{date_str}-{uuid.uuid4().hex[:8].upper()}"

    @property
    def is_settled(self) -> bool:
        return self.status in (self.Status.PAID, self.Status.REFUNDED)


class InvoiceDetail(TimestampMixin):
    """Invoice line item; ``subtotal`` is ``unit_price * quantity``."""

    class ItemType(models.TextChoices):
        ROOM = 'ROOM', 'Room'
        SERVICE = 'SERVICE', 'Service'
        OTHER = 'OTHER', 'Other'

    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.CASCADE,
        related_name='details'
    )
    item_name = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    item_type = models.CharField(
        max_length=20,
        choices=ItemType.choices,
        default=ItemType.SERVICE
    )
    service = models.ForeignKey(
        'core.Service',
        on_delete=models.SET_NULL,
        related_name='invoice_details',
        blank=True,
        null=True
    )
    variation = models.ForeignKey(
        'core.Variation',
        on_delete=models.SET_NULL,
        related_name='invoice_details',
        blank=True,
        null=True
    )

    class Meta:
        db_table = 'invoice_details'
        ordering = ['id']

    def __str__(self):
        return f"{self.item_name} x{self.quantity}"


class Payment(TimestampMixin):
    """A payment attempt for an event."""

    class Method(models.TextChoices):
        CREDIT_CARD = 'CREDIT_CARD', 'Credit Card'
        DEBIT_CARD = 'DEBIT_CARD', 'Debit Card'
        BANK_TRANSFER = 'BANK_TRANSFER', 'Bank Transfer'
        CASH = 'CASH', 'Cash'
        PAYPAL = 'PAYPAL', 'PayPal'
        STRIPE = 'STRIPE', 'Stripe'

    class Status(models.TextChoices):
        PENDING = 'PENDING', 'Pending'
        COMPLETED = 'COMPLETED', 'Completed'
        FAILED = 'FAILED', 'Failed'
        REFUNDED = 'REFUNDED', 'Refunded'
        CANCELLED = 'CANCELLED', 'Cancelled'

    event = models.ForeignKey(
        'core.Event',
        on_delete=models.SET_NULL,
        related_name='payments',
        blank=True,
        null=True
    )
    account = models.ForeignKey(
        'core.Account',
        on_delete=models.SET_NULL,
        related_name='payments',
        blank=True,
        null=True
    )
    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.SET_NULL,
        related_name='payments',
        blank=True,
        null=True
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    method = models.CharField(
        max_length=20,
        choices=Method.choices,
        default=Method.STRIPE
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True
    )
    transaction_id = models.CharField(max_length=255, blank=True, null=True)
    stripe_session_id = models.CharField(max_length=255, blank=True, null=True, db_index=True)
    checkout_url = models.URLField(max_length=1024, blank=True, null=True)
    paid_at = models.DateTimeField(blank=True, null=True)
    failure_reason = models.TextField(blank=True, null=True)

    class Meta:
        db_table = 'payments'
        ordering = ['-created_at']

    def __str__(self):
        return f"Payment {self.pk}: {self.amount} ({self.status})"
