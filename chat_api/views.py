"""chat_api views: one-to-one sessions, room history and realtime stats over REST."""

import logging

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from auth_api.permissions import IsAdminRole, IsEmailVerified
from chat_api import events, realtime, rooms, services
from chat_api.serializers import (
    MessageSerializer,
    SessionMessageCreateSerializer,
    SessionSerializer,
    SessionStartSerializer,
)
from peerconnect_server.exceptions import BadRequestError
from summaries_api.serializers import SessionSummarySerializer

logger = logging.getLogger('chat_api')


class SessionListCreateView(APIView):
    """GET: the caller's sessions as seeker or listener. POST: start a session with an approved listener."""
    permission_classes = [IsAuthenticated, IsEmailVerified]

    def get(self, request):
        sessions = services.list_my_sessions(request.user, status=request.query_params.get('status'))
        return Response(SessionSerializer(sessions, many=True).data, status=status.HTTP_200_OK)

    def post(self, request):
        ser = SessionStartSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        session = services.start_session(request.user, data['listener_id'], data['topic_id'], data.get('start_time'))
        return Response(SessionSerializer(session).data, status=status.HTTP_201_CREATED)


class SessionDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, session_id):
        session = services.get_session(session_id)
        rooms.check_room_access(request.user, rooms.SESSION, session_id)
        return Response(SessionSerializer(session).data, status=status.HTTP_200_OK)


class SessionMessagesView(APIView):
    """GET: the session transcript, oldest first. POST: add a message (also pushed to the room)."""
    permission_classes = [IsAuthenticated]

    def get(self, request, session_id):
        messages = services.session_messages(session_id, request.user)
        return Response(MessageSerializer(messages, many=True).data, status=status.HTTP_200_OK)

    def post(self, request, session_id):
        ser = SessionMessageCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        message = services.send_session_message(
            session_id, request.user, data.get('content', ''), data['message_type'], data.get('file_url')
        )
        room = rooms.room_name(rooms.SESSION, session_id)
        realtime.broadcast(room, events.NewMessage(room=room, message=rooms.serialize_message(message)))
        return Response(MessageSerializer(message).data, status=status.HTTP_201_CREATED)


class SessionEndView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, session_id):
        summary, pdf_url = services.end_session_and_generate_summary(session_id, request.user)
        return Response(
            {'summary': SessionSummarySerializer(summary).data, 'pdf_url': pdf_url},
            status=status.HTTP_200_OK,
        )


class RoomStatsView(APIView):
    """Message and live-socket counts for a room the caller may join."""
    permission_classes = [IsAuthenticated]

    def get(self, request, room_type, room_id):
        rooms.check_room_access(request.user, room_type, room_id)
        return Response(realtime.get_room_stats(room_type, room_id, request.user.user_id), status=status.HTTP_200_OK)


class SystemMessageView(APIView):
    """Admins post a SYSTEM message into any room."""
    permission_classes = [IsAuthenticated, IsAdminRole]

    def post(self, request, room_type, room_id):
        content = (request.data.get('content') or '').strip()
        if not content:
            raise BadRequestError('Message content is required')
        message = realtime.send_system_message(room_type, room_id, content, request.user)
        logger.info(f"[SystemMessageView] {request.user.user_id} posted a system message to {room_type} {room_id}")
        return Response(MessageSerializer(message).data, status=status.HTTP_201_CREATED)
