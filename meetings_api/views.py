"""meetings_api views. Managing a meeting requires being the group leader or a group ADMIN."""

import logging

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from meetings_api import services
from meetings_api.serializers import (
    MeetingCreateSerializer,
    MeetingSerializer,
    MeetingSummarySerializer,
    MeetingUpdateSerializer,
)

logger = logging.getLogger('meetings_api')


class MeetingCreateView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        ser = MeetingCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        meeting = services.create_meeting(request.user, ser.validated_data)
        return Response(MeetingSerializer(meeting).data, status=status.HTTP_201_CREATED)


class MeetingStartView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, meeting_id):
        meeting = services.start_meeting(meeting_id, request.user)
        return Response(MeetingSerializer(meeting).data, status=status.HTTP_200_OK)


class MeetingEndView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, meeting_id):
        meeting = services.end_meeting(meeting_id, request.user)
        return Response(MeetingSerializer(meeting).data, status=status.HTTP_200_OK)


class MeetingDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, meeting_id):
        return Response(MeetingSerializer(services.get_meeting(meeting_id)).data, status=status.HTTP_200_OK)

    def put(self, request, meeting_id):
        ser = MeetingUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        meeting = services.update_meeting(meeting_id, request.user, ser.validated_data)
        return Response(MeetingSerializer(meeting).data, status=status.HTTP_200_OK)

    def delete(self, request, meeting_id):
        services.delete_meeting(meeting_id, request.user)
        return Response({'message': 'Meeting deleted successfully'}, status=status.HTTP_200_OK)


class GroupMeetingsView(APIView):
    """Meetings of one group, latest scheduled first."""
    permission_classes = [IsAuthenticated]

    def get(self, request, group_id):
        meetings = services.list_group_meetings(group_id)
        return Response(MeetingSerializer(meetings, many=True).data, status=status.HTTP_200_OK)


class MeetingSummaryView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, meeting_id):
        return Response(MeetingSummarySerializer(services.meeting_summary(meeting_id)).data, status=status.HTTP_200_OK)
