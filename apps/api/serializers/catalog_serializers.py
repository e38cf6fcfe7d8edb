# apps/api/serializers/catalog_serializers.py
"""
Catalog Serializers

Rooms, images, service types, services, variations, pricing tiers and
event types. Writes for rooms, services and variations go through
CatalogService, pricing tiers through PricingTierService;
service types and event types are plain model CRUD.
"""

from rest_framework import serializers

from apps.core.models import Room, Image, ServiceType, Service, Variation, PricingTier, EventType


class ImageSerializer(serializers.ModelSerializer):
    """Stored image."""

    class Meta:
        model = Image
        fields = ['id', 'url', 'public_id', 'alt_text', 'room_id', 'service_id', 'created_at']
        read_only_fields = fields


class ImageUploadSerializer(serializers.Serializer):
    """Multipart image upload."""

    file = serializers.FileField()
    alt_text = serializers.CharField(max_length=255, required=False, allow_blank=True)


class RoomSerializer(serializers.ModelSerializer):
    """Room with derived counts when the listing annotated them."""

    status_display = serializers.CharField(source='get_status_display', read_only=True)
    image_count = serializers.IntegerField(read_only=True, required=False)
    events_count = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = Room
        fields = [
            'id', 'name', 'description', 'amenities',
            'status', 'status_display', 'is_active',
            'guest_capacity', 'base_price', 'hourly_rate',
            'image_count', 'events_count',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def to_representation(self, instance):
        data = super().to_representation(instance)
        include = self.context.get('include', set())
        if 'images' in include:
            data['images'] = ImageSerializer(instance.images.all(), many=True).data
        if 'events' in include:
            data['events'] = [
                {
                    'id': event.id,
                    'name': event.name,
                    'status': event.status,
                    'start_time': event.start_time.isoformat() if event.start_time else None,
                    'end_time': event.end_time.isoformat() if event.end_time else None,
                }
                for event in instance.events.all()
            ]
        return data


class RoomSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Room
        fields = ['id', 'name', 'status', 'guest_capacity', 'base_price', 'hourly_rate']
        read_only_fields = fields


class ServiceTypeSerializer(serializers.ModelSerializer):
    """Service type CRUD."""

    class Meta:
        model = ServiceType
        fields = ['id', 'name', 'description', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']


class EventTypeSerializer(serializers.ModelSerializer):
    """Event type CRUD."""

    class Meta:
        model = EventType
        fields = ['id', 'name', 'description', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']


class VariationSerializer(serializers.ModelSerializer):
    """Service variation."""

    bookings_count = serializers.IntegerField(read_only=True, required=False)
    pricing_tiers_count = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = Variation
        fields = [
            'id', 'service_id', 'name', 'description',
            'base_price', 'duration_hours', 'is_active',
            'bookings_count', 'pricing_tiers_count', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if 'service' in self.context.get('include', set()):
            data['service'] = {'id': instance.service.id, 'name': instance.service.name}
        return data


class PricingTierSerializer(serializers.ModelSerializer):
    """Dated price adjustment of a variation."""

    variation_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = PricingTier
        fields = [
            'id', 'variation_id', 'price_modifier', 'valid_from', 'valid_to',
            'is_active', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class ServiceSerializer(serializers.ModelSerializer):
    """Service with read-time aggregates."""

    service_type_id = serializers.IntegerField(read_only=True)
    average_rating = serializers.FloatField(read_only=True, required=False)
    review_count = serializers.IntegerField(read_only=True, required=False)
    variation_count = serializers.IntegerField(read_only=True, required=False)
    image_count = serializers.IntegerField(read_only=True, required=False)
    price_range = serializers.SerializerMethodField()

    class Meta:
        model = Service
        fields = [
            'id', 'name', 'description', 'service_type_id',
            'setup_time', 'is_available', 'is_active',
            'average_rating', 'review_count', 'variation_count', 'image_count',
            'price_range', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_price_range(self, obj) -> dict:
        if not hasattr(obj, 'lowest_price'):
            return None
        return {
            'min': str(obj.lowest_price) if obj.lowest_price is not None else None,
            'max': str(obj.highest_price) if obj.highest_price is not None else None,
        }

    def to_representation(self, instance):
        data = super().to_representation(instance)
        include = self.context.get('include', set())
        if 'service_type' in include:
            service_type = instance.service_type
            data['service_type'] = (
                ServiceTypeSerializer(service_type).data if service_type else None
            )
        if 'variations' in include:
            data['variations'] = VariationSerializer(
                [v for v in instance.variations.all() if v.is_active], many=True
            ).data
        if 'images' in include:
            data['images'] = ImageSerializer(instance.images.all(), many=True).data
        return data
