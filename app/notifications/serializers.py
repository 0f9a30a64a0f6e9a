"""
Serializers for notification API.

Serializers:
    NotificationSerializer: Read-only serializer for notification details
    UnreadCountSerializer: Response for unread count endpoint
    MarkAllReadResponseSerializer: Response for mark all read endpoint
"""

from __future__ import annotations

from rest_framework import serializers

from notifications.models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    """Read-only notification with its type key and actor email."""

    type_key = serializers.CharField(source="notification_type.key", read_only=True)
    actor_name = serializers.SerializerMethodField()

    class Meta:
        model = Notification
        fields = [
            "id",
            "type_key",
            "title",
            "body",
            "data",
            "actor_name",
            "is_read",
            "created_at",
        ]
        read_only_fields = fields

    def get_actor_name(self, obj: Notification) -> str | None:
        """None for system notifications or when the actor was deleted."""
        if obj.actor is None:
            return None
        return obj.actor.get_full_name()


class UnreadCountSerializer(serializers.Serializer):
    unread_count = serializers.IntegerField()


class MarkAllReadResponseSerializer(serializers.Serializer):
    marked_count = serializers.IntegerField()
