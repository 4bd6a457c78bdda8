from rest_framework import serializers

from notifications_api.models import Notification, NotificationType


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = ['notification_id', 'title', 'message', 'type', 'is_read', 'related_id', 'data', 'created_at']
        read_only_fields = fields


class NotificationCreateSerializer(serializers.Serializer):
    """``payload`` carries the fields of the variant named by ``type``."""
    user_id = serializers.UUIDField()
    type = serializers.ChoiceField(choices=NotificationType.choices)
    payload = serializers.DictField(required=False, default=dict)
    send_email = serializers.BooleanField(required=False, allow_null=True, default=None)


class BulkNotificationSerializer(serializers.Serializer):
    user_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)
    type = serializers.ChoiceField(choices=NotificationType.choices)
    payload = serializers.DictField(required=False, default=dict)
    send_email = serializers.BooleanField(required=False, allow_null=True, default=None)


class SessionReminderRequestSerializer(serializers.Serializer):
    session_id = serializers.UUIDField()


class NewResourceRequestSerializer(serializers.Serializer):
    resource_id = serializers.UUIDField()


class GroupActivityRequestSerializer(serializers.Serializer):
    group_id = serializers.UUIDField()
    activity_description = serializers.CharField(max_length=500)
