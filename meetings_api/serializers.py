from rest_framework import serializers

from meetings_api.models import Meeting
from summaries_api.serializers import GroupSummarySerializer


class MeetingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Meeting
        fields = [
            'meeting_id', 'group', 'title', 'description', 'type', 'status',
            'scheduled_start_time', 'scheduled_end_time', 'actual_start_time', 'actual_end_time',
            'agenda', 'max_participants', 'notes_template', 'summary_pdf_url', 'created_by',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class MeetingCreateSerializer(serializers.Serializer):
    group_id = serializers.UUIDField()
    title = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    type = serializers.ChoiceField(choices=Meeting.Type.choices, default=Meeting.Type.DISCUSSION)
    scheduled_start_time = serializers.DateTimeField()
    scheduled_end_time = serializers.DateTimeField(required=False, allow_null=True)
    agenda = serializers.ListField(child=serializers.CharField(max_length=500), required=False, default=list)
    max_participants = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    notes_template = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate(self, attrs):
        end = attrs.get('scheduled_end_time')
        if end and end <= attrs['scheduled_start_time']:
            raise serializers.ValidationError({'scheduled_end_time': 'End time must be after the start time.'})
        return attrs


class MeetingUpdateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    type = serializers.ChoiceField(choices=Meeting.Type.choices, required=False)
    scheduled_start_time = serializers.DateTimeField(required=False)
    scheduled_end_time = serializers.DateTimeField(required=False, allow_null=True)
    agenda = serializers.ListField(child=serializers.CharField(max_length=500), required=False)
    max_participants = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    notes_template = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class MeetingSummarySerializer(serializers.Serializer):
    meeting_id = serializers.UUIDField()
    summary_pdf_url = serializers.URLField(allow_null=True)
    group_summary = GroupSummarySerializer(allow_null=True)
