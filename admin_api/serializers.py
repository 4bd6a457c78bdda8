from rest_framework import serializers

from chat_api.serializers import SessionSerializer
from resources_api.serializers import ResourceSerializer
from user_mang.models.custom_user import Custom_User


class UserRoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=Custom_User.Role.choices)


class UserApprovalSerializer(serializers.Serializer):
    is_approved = serializers.BooleanField()


class GroupStatusSerializer(serializers.Serializer):
    is_active = serializers.BooleanField()


class AssignLeaderSerializer(serializers.Serializer):
    listener_id = serializers.UUIDField()


class ResourceStatusSerializer(serializers.Serializer):
    is_approved = serializers.BooleanField()


class SuitableLeaderSerializer(serializers.Serializer):
    user_id = serializers.CharField()
    first_name = serializers.CharField()
    last_name = serializers.CharField()
    email = serializers.EmailField()
    profile_picture = serializers.CharField(allow_null=True)
    bio = serializers.CharField(allow_null=True, allow_blank=True)
    experience = serializers.CharField(allow_null=True)
    motivation = serializers.CharField(allow_null=True)
    topics = serializers.ListField(child=serializers.CharField())
    topic_match_score = serializers.IntegerField()
    current_groups = serializers.IntegerField()


class AdminSessionSerializer(SessionSerializer):
    message_count = serializers.IntegerField(read_only=True)

    class Meta(SessionSerializer.Meta):
        fields = SessionSerializer.Meta.fields + ['message_count']
        read_only_fields = fields


class ResourceStatsSerializer(serializers.Serializer):
    total_resources = serializers.IntegerField()
    approved_resources = serializers.IntegerField()
    pending_resources = serializers.IntegerField()
    total_downloads = serializers.IntegerField()
    top_downloaded = ResourceSerializer(many=True)
