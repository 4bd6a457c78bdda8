from rest_framework import serializers

from resources_api.models import Resource


class ResourceSerializer(serializers.ModelSerializer):
    topic_name = serializers.CharField(source='topic.name', read_only=True)
    uploaded_by_name = serializers.CharField(source='uploaded_by.full_name', read_only=True)
    uploaded_by_role = serializers.CharField(source='uploaded_by.role', read_only=True)

    class Meta:
        model = Resource
        fields = [
            'resource_id', 'title', 'description', 'type', 'file_url',
            'topic', 'topic_name', 'uploaded_by', 'uploaded_by_name', 'uploaded_by_role',
            'is_approved', 'download_count', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class ResourceCreateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    type = serializers.ChoiceField(choices=Resource.Type.choices)
    file_url = serializers.URLField(max_length=500)
    topic_id = serializers.UUIDField()


class ResourceUpdateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    is_approved = serializers.BooleanField(required=False)


class ResourceApprovalSerializer(serializers.Serializer):
    is_approved = serializers.BooleanField()
    admin_notes = serializers.CharField(required=False, allow_blank=True)

