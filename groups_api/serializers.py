from rest_framework import serializers

from chat_api.serializers import MessageSerializer
from groups_api.models import Group, GroupMember, ListenerResponse
from topics_api.serializers import TopicSerializer
from user_mang.serializers import UserSummarySerializer


class GroupMemberSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = GroupMember
        fields = ['membership_id', 'user', 'role', 'joined_at']
        read_only_fields = fields


class GroupSerializer(serializers.ModelSerializer):
    topic = TopicSerializer(read_only=True)
    leader = UserSummarySerializer(read_only=True)
    member_count = serializers.SerializerMethodField()

    class Meta:
        model = Group
        fields = [
            'group_id', 'name', 'description', 'topic', 'leader', 'is_active',
            'max_members', 'member_count', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_member_count(self, obj) -> int:
        annotated = getattr(obj, 'members_total', None)
        return annotated if annotated is not None else obj.member_count


class GroupDetailSerializer(GroupSerializer):
    members = serializers.SerializerMethodField()

    class Meta(GroupSerializer.Meta):
        fields = GroupSerializer.Meta.fields + ['members']
        read_only_fields = fields

    def get_members(self, obj):
        members = getattr(obj, 'member_list', None)
        if members is None:
            members = obj.members.select_related('user')
        return GroupMemberSerializer(members, many=True).data


class GroupCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=150)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    topic_id = serializers.UUIDField()
    max_members = serializers.IntegerField(required=False, min_value=2, max_value=1000, default=100)


class GroupMessageCreateSerializer(serializers.Serializer):
    content = serializers.CharField(max_length=5000)


class GroupMessageResultSerializer(serializers.Serializer):
    message = MessageSerializer()
    content_filter = serializers.DictField()


class ListenerResponseCreateSerializer(serializers.Serializer):
    flagged_user_id = serializers.UUIDField()
    message_id = serializers.UUIDField(required=False, allow_null=True)
    response_content = serializers.CharField(max_length=5000)
    response_type = serializers.ChoiceField(choices=ListenerResponse.ResponseType.choices)
    follow_up_required = serializers.BooleanField(required=False, default=False)
    follow_up_notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ListenerResponseSerializer(serializers.ModelSerializer):
    class Meta:
        model = ListenerResponse
        fields = [
            'response_id', 'group', 'flagged_user', 'message', 'content', 'flagged_terms', 'severity',
            'listener', 'response_content', 'response_type', 'status', 'follow_up_required',
            'follow_up_notes', 'created_at', 'responded_at',
        ]
        read_only_fields = fields
