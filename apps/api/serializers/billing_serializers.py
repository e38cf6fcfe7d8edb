# apps/api/serializers/billing_serializers.py
"""
Billing Serializers
"""

from rest_framework import serializers

from apps.core.models import Invoice, InvoiceDetail, Payment


class InvoiceDetailSerializer(serializers.ModelSerializer):
    """Invoice line item."""

    class Meta:
        model = InvoiceDetail
        fields = [
            'id', 'item_name', 'quantity', 'unit_price', 'subtotal',
            'item_type', 'service_id', 'variation_id',
        ]
        read_only_fields = fields


class InvoiceSerializer(serializers.ModelSerializer):
    """Invoice summary for lists."""

    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Invoice
        fields = [
            'id', 'invoice_number', 'event_id',
            'total_amount', 'tax_amount', 'discount_amount',
            'status', 'status_display',
            'issue_date', 'due_date', 'paid_date', 'notes',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class InvoiceDetailedSerializer(InvoiceSerializer):
    """Invoice with its line items."""

    details = InvoiceDetailSerializer(many=True, read_only=True)

    class Meta(InvoiceSerializer.Meta):
        fields = InvoiceSerializer.Meta.fields + ['details']
        read_only_fields = fields


class PaymentSerializer(serializers.ModelSerializer):
    """Payment attempt."""

    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Payment
        fields = [
            'id', 'event_id', 'account_id', 'invoice_id',
            'amount', 'method', 'status', 'status_display',
            'transaction_id', 'stripe_session_id', 'checkout_url',
            'paid_at', 'failure_reason',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields
