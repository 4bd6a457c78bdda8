from rest_framework import serializers

from listeners_api.models import ListenerApplication
from topics_api.serializers import TopicSerializer


class ListenerMatchSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    first_name = serializers.CharField()
    last_name = serializers.CharField()
    profile_picture = serializers.URLField(allow_null=True)
    bio = serializers.CharField(allow_null=True)
    topic_overlap = serializers.IntegerField()
    matching_topics = serializers.ListField(child=serializers.CharField())
    session_count = serializers.IntegerField()


class ListenerRecommendationSerializer(ListenerMatchSerializer):
    confidence = serializers.FloatField()
    reason = serializers.CharField()


class ApplicantSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    first_name = serializers.CharField()
    last_name = serializers.CharField()
    email = serializers.EmailField()
    profile_picture = serializers.URLField(allow_null=True)


class ListenerApplicationSerializer(serializers.ModelSerializer):
    user = ApplicantSerializer(read_only=True)
    topics = TopicSerializer(many=True, read_only=True)

    class Meta:
        model = ListenerApplication
        fields = [
            'application_id', 'user', 'bio', 'experience', 'topics', 'motivation', 'status',
            'admin_notes', 'reviewed_by', 'reviewed_at', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class ListenerApplicationCreateSerializer(serializers.Serializer):
    bio = serializers.CharField()
    experience = serializers.CharField()
    motivation = serializers.CharField()
    topic_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)


class ListenerApplicationUpdateSerializer(serializers.Serializer):
    bio = serializers.CharField(required=False)
    experience = serializers.CharField(required=False)
    motivation = serializers.CharField(required=False)
    topic_ids = serializers.ListField(child=serializers.UUIDField(), required=False)


class ApplicationReviewSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[ListenerApplication.Status.APPROVED, ListenerApplication.Status.REJECTED])
    admin_notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
