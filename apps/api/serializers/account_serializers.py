# apps/api/serializers/account_serializers.py
"""
Account-facing Serializers

Reviews written by accounts and notifications addressed to them.
"""

from rest_framework import serializers

from apps.core.models import Review, Notification


class ReviewSerializer(serializers.ModelSerializer):
    class Meta:
        model = Review
        fields = [
            'id', 'account_id', 'service_id', 'event_id',
            'rate', 'comment', 'is_verified',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class NotificationSerializer(serializers.ModelSerializer):
    type_display = serializers.CharField(source='get_type_display', read_only=True)

    class Meta:
        model = Notification
        fields = [
            'id', 'title', 'message', 'type', 'type_display',
            'is_read', 'read_at', 'created_at',
        ]
        read_only_fields = fields
