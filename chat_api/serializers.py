from rest_framework import serializers

from chat_api.models import Message, Session
from topics_api.serializers import TopicSerializer
from user_mang.serializers import UserSummarySerializer


class MessageSerializer(serializers.ModelSerializer):
    sender = UserSummarySerializer(read_only=True)

    class Meta:
        model = Message
        fields = [
            'message_id', 'sender', 'receiver', 'group', 'session', 'meeting',
            'content', 'message_type', 'file_url', 'is_read', 'created_at',
        ]
        read_only_fields = fields


class SessionSerializer(serializers.ModelSerializer):
    seeker = UserSummarySerializer(read_only=True)
    listener = UserSummarySerializer(read_only=True)
    topic = TopicSerializer(read_only=True)

    class Meta:
        model = Session
        fields = ['session_id', 'seeker', 'listener', 'topic', 'status', 'start_time', 'end_time', 'created_at']
        read_only_fields = fields


class SessionStartSerializer(serializers.Serializer):
    listener_id = serializers.UUIDField()
    topic_id = serializers.UUIDField()
    start_time = serializers.DateTimeField(required=False)


class SessionMessageCreateSerializer(serializers.Serializer):
    content = serializers.CharField(max_length=5000, allow_blank=True, required=False, default='')
    message_type = serializers.ChoiceField(choices=['TEXT', 'FILE', 'IMAGE'], default='TEXT')
    file_url = serializers.URLField(required=False, allow_null=True)

    def validate(self, attrs):
        if not attrs.get('content', '').strip() and not attrs.get('file_url'):
            raise serializers.ValidationError('Either content or file_url is required.')
        return attrs
