from rest_framework import serializers

from summaries_api.models import GroupSummary, SessionSummary


class SessionSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = SessionSummary
        fields = [
            'summary_id', 'session', 'key_points', 'emotional_tone', 'action_items',
            'suggested_resources', 'ai_generated', 'pdf_url', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class GroupSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = GroupSummary
        fields = [
            'summary_id', 'group', 'topics_covered', 'group_sentiment', 'recommended_resources',
            'ai_generated', 'pdf_url', 'created_at', 'updated_at',
        ]
        read_only_fields = fields
