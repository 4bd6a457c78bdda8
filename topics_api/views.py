"""topics_api views: topic catalogue and the authenticated user's topic selection."""

import logging

from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from auth_api.permissions import IsAdminRole
from topics_api import services
from topics_api.serializers import TopicCreateSerializer, TopicSelectionSerializer, TopicSerializer

logger = logging.getLogger('topics_api')


class TopicListCreateView(APIView):
    """GET: all topics ordered by name (public). POST: create a topic (admins)."""

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsAuthenticated(), IsAdminRole()]
        return [AllowAny()]

    def get(self, request):
        topics = services.list_topics()
        return Response(TopicSerializer(topics, many=True).data, status=status.HTTP_200_OK)

    def post(self, request):
        ser = TopicCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        topic = services.create_topic(ser.validated_data['name'], ser.validated_data.get('description', ''))
        logger.info(f"[TopicListCreateView] Topic created by {request.user.user_id}: {topic.name}")
        return Response(TopicSerializer(topic).data, status=status.HTTP_201_CREATED)


class TopicDetailView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, topic_id):
        topic = services.get_topic(topic_id)
        return Response(TopicSerializer(topic).data, status=status.HTTP_200_OK)


class UserTopicSelectionView(APIView):
    """Every topic flagged with whether the current user selected it."""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(services.get_topics_for_selection(request.user), status=status.HTTP_200_OK)


class UserTopicsView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        topics = services.get_user_topics(request.user)
        return Response(TopicSerializer(topics, many=True).data, status=status.HTTP_200_OK)

    def put(self, request):
        ser = TopicSelectionSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        topics = services.update_user_topics(request.user, ser.validated_data['topic_ids'])
        return Response(
            {'message': 'Topics updated successfully', 'topics': TopicSerializer(topics, many=True).data},
            status=status.HTTP_200_OK,
        )


class InitialTopicSelectionView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        ser = TopicSelectionSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        topics = services.initial_topic_selection(request.user, ser.validated_data['topic_ids'])
        return Response(
            {
                'message': 'Topics selected successfully',
                'profile_completed': True,
                'topics': TopicSerializer(topics, many=True).data,
            },
            status=status.HTTP_200_OK,
        )
