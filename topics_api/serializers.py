from rest_framework import serializers

from topics_api.models import Topic


class TopicSerializer(serializers.ModelSerializer):
    class Meta:
        model = Topic
        fields = ['topic_id', 'name', 'description', 'created_at']
        read_only_fields = ['topic_id', 'created_at']


class TopicCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    description = serializers.CharField(required=False, allow_blank=True, default='')


class TopicSelectionSerializer(serializers.Serializer):
    topic_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)
