"""admin_api views: platform dashboard and moderation endpoints, admins only."""

import logging

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from admin_api import services
from admin_api.serializers import (
    AdminSessionSerializer,
    AssignLeaderSerializer,
    GroupStatusSerializer,
    ResourceStatsSerializer,
    ResourceStatusSerializer,
    SuitableLeaderSerializer,
    UserApprovalSerializer,
    UserRoleSerializer,
)
from auth_api.permissions import IsAdminRole
from groups_api.serializers import GroupSerializer
from listeners_api import services as listeners
from listeners_api.models import ListenerApplication
from listeners_api.serializers import ApplicationReviewSerializer, ListenerApplicationSerializer
from resources_api.serializers import ResourceSerializer
from summaries_api.serializers import GroupSummarySerializer, SessionSummarySerializer
from user_mang.serializers import UserSerializer

logger = logging.getLogger('admin_api')


class AdminAPIView(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]


# ---------- Statistics ----------

class DashboardStatsView(AdminAPIView):
    def get(self, request):
        return Response(services.dashboard_stats(), status=status.HTTP_200_OK)


class SystemStatsView(AdminAPIView):
    def get(self, request):
        return Response(services.system_stats(), status=status.HTTP_200_OK)


class ApplicationStatsView(AdminAPIView):
    def get(self, request):
        return Response(listeners.application_stats(), status=status.HTTP_200_OK)


# ---------- Listener applications ----------

class PendingApplicationsView(AdminAPIView):
    def get(self, request):
        applications = listeners.list_applications(ListenerApplication.Status.PENDING)
        return Response(ListenerApplicationSerializer(applications, many=True).data, status=status.HTTP_200_OK)


class AllApplicationsView(AdminAPIView):
    def get(self, request):
        status_filter = request.query_params.get('status')
        applications = listeners.list_applications(status_filter.upper() if status_filter else None)
        return Response(ListenerApplicationSerializer(applications, many=True).data, status=status.HTTP_200_OK)


class ApplicationReviewView(AdminAPIView):
    """Approve or reject a pending application.

    Mounted twice (``PUT applications/<id>/status`` and ``POST
    listener-applications/<id>/review``); both routes share this handler.
    """

    def _review(self, request, application_id):
        ser = ApplicationReviewSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        application = listeners.review_application(
            request.user, application_id, ser.validated_data['status'], ser.validated_data.get('admin_notes')
        )
        return Response(ListenerApplicationSerializer(application).data, status=status.HTTP_200_OK)

    def put(self, request, application_id):
        return self._review(request, application_id)

    def post(self, request, application_id):
        return self._review(request, application_id)


# ---------- Users ----------

class UserListView(AdminAPIView):
    def get(self, request):
        users = services.list_users(request.query_params.get('role')).prefetch_related('topics')
        return Response(UserSerializer(users, many=True).data, status=status.HTTP_200_OK)


class UserDetailView(AdminAPIView):
    def get(self, request, user_id):
        return Response(UserSerializer(services.get_user(user_id)).data, status=status.HTTP_200_OK)

    def delete(self, request, user_id):
        services.delete_user(request.user, user_id)
        return Response({'message': 'User deleted successfully'}, status=status.HTTP_200_OK)


class UserRoleView(AdminAPIView):
    def put(self, request, user_id):
        ser = UserRoleSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        user = services.update_user_role(request.user, user_id, ser.validated_data['role'])
        return Response(UserSerializer(user).data, status=status.HTTP_200_OK)


class UserApprovalView(AdminAPIView):
    def put(self, request, user_id):
        ser = UserApprovalSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        user = services.update_user_approval(request.user, user_id, ser.validated_data['is_approved'])
        return Response(UserSerializer(user).data, status=status.HTTP_200_OK)


# ---------- Groups ----------

class GroupListView(AdminAPIView):
    def get(self, request):
        return Response(GroupSerializer(services.list_groups(), many=True).data, status=status.HTTP_200_OK)


class GroupDetailView(AdminAPIView):
    def get(self, request, group_id):
        return Response(GroupSerializer(services.get_group(group_id)).data, status=status.HTTP_200_OK)

    def delete(self, request, group_id):
        services.delete_group(request.user, group_id)
        return Response({'message': 'Group deleted successfully'}, status=status.HTTP_200_OK)


class GroupStatusView(AdminAPIView):
    def put(self, request, group_id):
        ser = GroupStatusSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        group = services.update_group_status(request.user, group_id, ser.validated_data['is_active'])
        return Response(GroupSerializer(group).data, status=status.HTTP_200_OK)


class GroupLeaderView(AdminAPIView):
    def post(self, request, group_id):
        ser = AssignLeaderSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        group = services.assign_group_leader(request.user, group_id, ser.validated_data['listener_id'])
        return Response(GroupSerializer(group).data, status=status.HTTP_200_OK)


class SuitableLeadersView(AdminAPIView):
    def get(self, request, group_id):
        leaders = services.suitable_leaders(group_id)
        return Response(SuitableLeaderSerializer(leaders, many=True).data, status=status.HTTP_200_OK)


# ---------- Resources ----------

class ResourceListView(AdminAPIView):
    def get(self, request):
        return Response(ResourceSerializer(services.list_resources(), many=True).data, status=status.HTTP_200_OK)


class ResourceDetailView(AdminAPIView):
    def get(self, request, resource_id):
        return Response(ResourceSerializer(services.get_resource(resource_id)).data, status=status.HTTP_200_OK)

    def delete(self, request, resource_id):
        services.delete_resource(request.user, resource_id)
        return Response({'message': 'Resource deleted successfully'}, status=status.HTTP_200_OK)


class ResourceStatusView(AdminAPIView):
    def put(self, request, resource_id):
        ser = ResourceStatusSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        resource = services.update_resource_status(request.user, resource_id, ser.validated_data['is_approved'])
        return Response(ResourceSerializer(resource).data, status=status.HTTP_200_OK)


class ResourceStatsView(AdminAPIView):
    def get(self, request):
        return Response(ResourceStatsSerializer(services.resource_stats()).data, status=status.HTTP_200_OK)


# ---------- Sessions and summaries ----------

class SessionListView(AdminAPIView):
    def get(self, request):
        sessions = services.list_sessions(request.query_params.get('status'))
        return Response(AdminSessionSerializer(sessions, many=True).data, status=status.HTTP_200_OK)


class SessionDetailView(AdminAPIView):
    def get(self, request, session_id):
        return Response(AdminSessionSerializer(services.get_session(session_id)).data, status=status.HTTP_200_OK)

    def delete(self, request, session_id):
        services.delete_session(request.user, session_id)
        return Response({'message': 'Session deleted successfully'}, status=status.HTTP_200_OK)


class SessionSummaryListView(AdminAPIView):
    def get(self, request):
        summaries = services.list_session_summaries()
        return Response(SessionSummarySerializer(summaries, many=True).data, status=status.HTTP_200_OK)


class SessionSummaryDetailView(AdminAPIView):
    def delete(self, request, summary_id):
        services.delete_session_summary(request.user, summary_id)
        return Response({'message': 'Session summary deleted successfully'}, status=status.HTTP_200_OK)


class GroupSummaryListView(AdminAPIView):
    def get(self, request):
        summaries = services.list_group_summaries()
        return Response(GroupSummarySerializer(summaries, many=True).data, status=status.HTTP_200_OK)


class GroupSummaryDetailView(AdminAPIView):
    def delete(self, request, summary_id):
        services.delete_group_summary(request.user, summary_id)
        return Response({'message': 'Group summary deleted successfully'}, status=status.HTTP_200_OK)
