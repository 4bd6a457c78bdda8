"""notifications_api views: the caller's inbox plus admin-only creation endpoints.

Creation endpoints accept the notification ``type`` and a ``payload`` dict that
is parsed into the matching payload variant, so titles and messages are always
rendered server-side.
"""

import logging

from django.contrib.auth import get_user_model
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from auth_api.permissions import IsAdminRole
from chat_api.models import Session
from groups_api.models import Group
from notifications_api import services
from notifications_api.payloads import build_payload
from notifications_api.serializers import (
    BulkNotificationSerializer,
    GroupActivityRequestSerializer,
    NewResourceRequestSerializer,
    NotificationCreateSerializer,
    NotificationSerializer,
    SessionReminderRequestSerializer,
)
from peerconnect_server.exceptions import NotFoundError
from peerconnect_server.utils.pagination import parse_page_params
from resources_api.models import Resource

logger = logging.getLogger('notifications_api')

User = get_user_model()


class NotificationListView(APIView):
    """GET: the caller's notifications, newest first (``page``, ``limit`` default 20).
    POST: create one notification for any user (admins)."""

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsAuthenticated(), IsAdminRole()]
        return [IsAuthenticated()]

    def get(self, request):
        page, limit = parse_page_params(request.query_params, default_limit=20)
        items, pagination = services.list_notifications(request.user, page, limit)
        return Response(
            {'notifications': NotificationSerializer(items, many=True).data, 'pagination': pagination},
            status=status.HTTP_200_OK,
        )

    def post(self, request):
        ser = NotificationCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        user = User.objects.filter(user_id=data['user_id']).first()
        if user is None:
            raise NotFoundError('User not found')
        payload = build_payload(data['type'], data['payload'])
        notification = services.create_notification(user, payload, send_email=data.get('send_email'))
        logger.info(f"[NotificationListView] {request.user.user_id} created {data['type']} for {user.user_id}")
        return Response(NotificationSerializer(notification).data, status=status.HTTP_201_CREATED)


class UnreadCountView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({'unread_count': services.unread_count(request.user)}, status=status.HTTP_200_OK)


class NotificationStatsView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(services.notification_stats(request.user), status=status.HTTP_200_OK)


class MarkReadView(APIView):
    permission_classes = [IsAuthenticated]

    def put(self, request, notification_id):
        notification = services.mark_read(notification_id, request.user)
        return Response(NotificationSerializer(notification).data, status=status.HTTP_200_OK)


class MarkAllReadView(APIView):
    permission_classes = [IsAuthenticated]

    def put(self, request):
        count = services.mark_all_read(request.user)
        return Response({'updated': count}, status=status.HTTP_200_OK)


class NotificationDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def delete(self, request, notification_id):
        services.delete_notification(notification_id, request.user)
        return Response({'message': 'Notification deleted'}, status=status.HTTP_200_OK)


class BulkNotificationView(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def post(self, request):
        ser = BulkNotificationSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        users = list(User.objects.filter(user_id__in=data['user_ids']))
        payload = build_payload(data['type'], data['payload'])
        created = services.create_bulk_notifications(users, [payload], send_email=data.get('send_email'))
        return Response(
            {'created': len(created), 'notifications': NotificationSerializer(created, many=True).data},
            status=status.HTTP_201_CREATED,
        )


class SessionReminderView(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def post(self, request):
        ser = SessionReminderRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        session = (
            Session.objects.select_related('seeker', 'listener', 'topic')
            .filter(session_id=ser.validated_data['session_id']).first()
        )
        if session is None:
            raise NotFoundError('Session not found')
        notification = services.send_session_reminder(session)
        return Response({'sent': notification is not None}, status=status.HTTP_200_OK)


class NewResourceNotificationView(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def post(self, request):
        ser = NewResourceRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        resource = (
            Resource.objects.select_related('topic', 'uploaded_by')
            .filter(resource_id=ser.validated_data['resource_id']).first()
        )
        if resource is None:
            raise NotFoundError('Resource not found')
        users = User.objects.filter(topics=resource.topic).exclude(user_id=resource.uploaded_by_id)
        created = services.notify_new_resource(resource, users)
        return Response({'created': len(created)}, status=status.HTTP_200_OK)


class GroupActivityNotificationView(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def post(self, request):
        ser = GroupActivityRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        group = Group.objects.filter(group_id=ser.validated_data['group_id']).first()
        if group is None:
            raise NotFoundError('Group not found')
        users = User.objects.filter(group_memberships__group=group)
        created = services.notify_group_activity(group, ser.validated_data['activity_description'], users)
        return Response({'created': len(created)}, status=status.HTTP_200_OK)
