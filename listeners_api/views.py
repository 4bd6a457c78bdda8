"""listeners_api views: matching seekers with listeners and the listener application flow."""

import logging

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from auth_api.permissions import IsAdminRole, IsEmailVerified
from listeners_api import services
from listeners_api.serializers import (
    ListenerApplicationCreateSerializer,
    ListenerApplicationSerializer,
    ListenerApplicationUpdateSerializer,
    ListenerMatchSerializer,
    ListenerRecommendationSerializer,
)

logger = logging.getLogger('listeners_api')


class ListenerMatchesView(APIView):
    """Available listeners sharing the caller's topics (``limit`` 1..50, default 10)."""
    permission_classes = [IsAuthenticated, IsEmailVerified]

    def get(self, request):
        matches = services.find_listeners_by_topic_overlap(request.user, request.query_params.get('limit', 10))
        return Response(ListenerMatchSerializer(matches, many=True).data, status=status.HTTP_200_OK)


class ListenerRecommendationsView(APIView):
    permission_classes = [IsAuthenticated, IsEmailVerified]

    def get(self, request):
        recs = services.recommendations(request.user, request.query_params.get('limit', 5))
        return Response(ListenerRecommendationSerializer(recs, many=True).data, status=status.HTTP_200_OK)


class TopicListenersView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, topic_id):
        matches = services.available_for_topic(topic_id, request.query_params.get('limit', 10))
        return Response(ListenerMatchSerializer(matches, many=True).data, status=status.HTTP_200_OK)


class ApplyView(APIView):
    permission_classes = [IsAuthenticated, IsEmailVerified]

    def post(self, request):
        ser = ListenerApplicationCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        application = services.submit_application(request.user, ser.validated_data)
        logger.info(f"[ApplyView] Listener application submitted by {request.user.user_id}")
        return Response(ListenerApplicationSerializer(application).data, status=status.HTTP_201_CREATED)


class MyApplicationView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        application = services.get_my_application(request.user)
        return Response(ListenerApplicationSerializer(application).data, status=status.HTTP_200_OK)


class ApplicationUpdateView(APIView):
    permission_classes = [IsAuthenticated]

    def put(self, request):
        ser = ListenerApplicationUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        application = services.update_application(request.user, ser.validated_data)
        return Response(ListenerApplicationSerializer(application).data, status=status.HTTP_200_OK)


class ApplicationWithdrawView(APIView):
    permission_classes = [IsAuthenticated]

    def delete(self, request):
        services.withdraw_application(request.user)
        return Response({'message': 'Listener application withdrawn successfully'}, status=status.HTTP_200_OK)


class ApplicationListView(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def get(self, request):
        applications = services.list_applications()
        return Response(ListenerApplicationSerializer(applications, many=True).data, status=status.HTTP_200_OK)


class ApplicationsByStatusView(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def get(self, request, application_status):
        applications = services.list_applications(application_status.upper())
        return Response(ListenerApplicationSerializer(applications, many=True).data, status=status.HTTP_200_OK)
