# apps/api/serializers/event_serializers.py
"""
Event Serializers

Output serializers for events and their booked services. Request
payloads are validated by the booking services, not here.
"""

from rest_framework import serializers

from apps.core.models import Event, EventService
from .billing_serializers import InvoiceDetailedSerializer
from .catalog_serializers import RoomSummarySerializer, EventTypeSerializer


class EventServiceSerializer(serializers.ModelSerializer):
    """Booked service (line item) of an event."""

    service_name = serializers.SerializerMethodField()
    variation_name = serializers.SerializerMethodField()
    unit_price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = EventService
        fields = [
            'id', 'event_id', 'service_id', 'service_name',
            'variation_id', 'variation_name',
            'quantity', 'custom_price', 'unit_price', 'notes', 'status',
            'scheduled_time', 'duration_hours', 'end_time',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_service_name(self, obj) -> str:
        return obj.service.name if obj.service_id else None

    def get_variation_name(self, obj) -> str:
        return obj.variation.name if obj.variation_id else None


class EventSerializer(serializers.ModelSerializer):
    """
    Event with optional related objects.

    ``context['include']`` selects which of room, account, event_type,
    services and invoice are embedded.
    """

    status_display = serializers.CharField(source='get_status_display', read_only=True)
    services_count = serializers.SerializerMethodField()

    class Meta:
        model = Event
        fields = [
            'id', 'name', 'description', 'event_date',
            'start_time', 'end_time',
            'estimated_cost', 'final_cost', 'room_service_fee',
            'status', 'status_display',
            'account_id', 'room_id', 'event_type_id',
            'services_count',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_services_count(self, obj) -> int:
        if hasattr(obj, 'services_count'):
            return obj.services_count
        return obj.event_services.count()

    def to_representation(self, instance):
        data = super().to_representation(instance)
        include = self.context.get('include', set())

        if 'room' in include:
            data['room'] = RoomSummarySerializer(instance.room).data if instance.room else None
        if 'account' in include:
            account = instance.account
            data['account'] = {
                'id': account.id,
                'full_name': account.full_name,
                'email': account.email,
            } if account else None
        if 'event_type' in include:
            data['event_type'] = (
                EventTypeSerializer(instance.event_type).data if instance.event_type else None
            )
        if 'services' in include:
            data['services'] = EventServiceSerializer(
                instance.event_services.all(), many=True
            ).data
        if 'invoice' in include:
            # Reverse one-to-one raises an AttributeError subclass when missing
            invoice = getattr(instance, 'invoice', None)
            data['invoice'] = InvoiceDetailedSerializer(invoice).data if invoice else None
        return data
