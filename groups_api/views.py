"""groups_api views: group catalogue, membership and moderated group messaging."""

import logging

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from auth_api.permissions import IsEmailVerified
from chat_api.serializers import MessageSerializer
from groups_api import services
from groups_api.serializers import (
    GroupCreateSerializer,
    GroupDetailSerializer,
    GroupMessageCreateSerializer,
    GroupSerializer,
    ListenerResponseCreateSerializer,
    ListenerResponseSerializer,
)
from peerconnect_server.utils.pagination import parse_page_params

logger = logging.getLogger('groups_api')


class GroupListCreateView(APIView):
    """GET: groups, optionally filtered by ``topic_id``. POST: create a group led by the caller."""
    permission_classes = [IsAuthenticated, IsEmailVerified]

    def get(self, request):
        groups = services.list_groups(topic_id=request.query_params.get('topic_id'))
        return Response(GroupSerializer(groups, many=True).data, status=status.HTTP_200_OK)

    def post(self, request):
        ser = GroupCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        group = services.create_group(
            request.user, data['name'], data.get('description', ''), data['topic_id'], data['max_members']
        )
        return Response(GroupDetailSerializer(services.get_group(group.group_id)).data, status=status.HTTP_201_CREATED)


class MyGroupsView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        groups = services.list_groups(mine_for=request.user)
        return Response(GroupSerializer(groups, many=True).data, status=status.HTTP_200_OK)


class GroupDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, group_id):
        return Response(GroupDetailSerializer(services.get_group(group_id)).data, status=status.HTTP_200_OK)


class JoinGroupView(APIView):
    permission_classes = [IsAuthenticated, IsEmailVerified]

    def post(self, request, group_id):
        member = services.join_group(group_id, request.user)
        return Response(
            {
                'message': 'Joined group successfully',
                'group_id': str(group_id),
                'role': member.role,
                'anonymous_name': services.generate_anonymous_name(request.user.user_id, group_id),
            },
            status=status.HTTP_201_CREATED,
        )


class LeaveGroupView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, group_id):
        services.leave_group(group_id, request.user)
        return Response({'message': 'Left group successfully'}, status=status.HTTP_200_OK)


class GroupMessagesView(APIView):
    """GET: paginated history, newest first. POST: send a message through the content filter."""
    permission_classes = [IsAuthenticated]

    def get(self, request, group_id):
        page, limit = parse_page_params(request.query_params, default_limit=50)
        items, pagination = services.get_group_messages(group_id, request.user, page, limit)
        return Response(
            {'messages': MessageSerializer(items, many=True).data, 'pagination': pagination},
            status=status.HTTP_200_OK,
        )

    def post(self, request, group_id):
        ser = GroupMessageCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        message, result = services.send_group_message(group_id, request.user, ser.validated_data['content'])
        return Response(
            {'message': MessageSerializer(message).data, 'content_filter': result.to_dict()},
            status=status.HTTP_201_CREATED,
        )


class CanSendMessageView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, group_id):
        allowed, reason = services.can_send_message(group_id, request.user)
        return Response({'can_send': allowed, 'reason': reason or None}, status=status.HTTP_200_OK)


class ListenerResponseView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, group_id):
        ser = ListenerResponseCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)
        record = services.create_listener_response(group_id, data.pop('flagged_user_id'), request.user, data)
        return Response(ListenerResponseSerializer(record).data, status=status.HTTP_201_CREATED)


class AnonymousNameView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, group_id):
        name = services.generate_anonymous_name(request.user.user_id, group_id)
        return Response({'anonymous_name': name}, status=status.HTTP_200_OK)
