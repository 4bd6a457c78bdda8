"""resources_api views: upload, review, browse and download shared resources."""

import logging

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from auth_api.permissions import IsAdminRole, IsListenerOrAdmin
from resources_api import services
from resources_api.serializers import (
    ResourceApprovalSerializer,
    ResourceCreateSerializer,
    ResourceSerializer,
    ResourceUpdateSerializer,
)

logger = logging.getLogger('resources_api')


def _flag(value) -> bool:
    return str(value).lower() in ('1', 'true', 'yes')


def _include_unapproved(request) -> bool:
    # Only admins may see resources still waiting for review
    return request.user.role == 'ADMIN' and _flag(request.query_params.get('include_unapproved'))


class ResourceListCreateView(APIView):
    """GET: approved resources, newest first. POST: upload a resource (approved listeners and admins)."""

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsAuthenticated(), IsListenerOrAdmin()]
        return [IsAuthenticated()]

    def get(self, request):
        resources = services.list_resources(_include_unapproved(request))
        return Response(ResourceSerializer(resources, many=True).data, status=status.HTTP_200_OK)

    def post(self, request):
        ser = ResourceCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        resource = services.create_resource(request.user, ser.validated_data)
        return Response(ResourceSerializer(resource).data, status=status.HTTP_201_CREATED)


class ResourceSearchView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        query = request.query_params.get('q', '')
        topic_id = request.query_params.get('topic_id')
        logger.info(f'[ResourceSearchView] Searching resources for "{query}" topic={topic_id}')
        resources = services.search_resources(query, topic_id)
        return Response(ResourceSerializer(resources, many=True).data, status=status.HTTP_200_OK)


class PendingResourcesView(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def get(self, request):
        resources = services.pending_resources()
        return Response(ResourceSerializer(resources, many=True).data, status=status.HTTP_200_OK)


class TopicResourcesView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, topic_id):
        resources = services.resources_by_topic(topic_id, _include_unapproved(request))
        return Response(ResourceSerializer(resources, many=True).data, status=status.HTTP_200_OK)


class ResourceDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, resource_id):
        resource = services.get_resource(resource_id, request.user)
        return Response(ResourceSerializer(resource).data, status=status.HTTP_200_OK)

    def put(self, request, resource_id):
        ser = ResourceUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        resource = services.update_resource(request.user, resource_id, ser.validated_data)
        return Response(ResourceSerializer(resource).data, status=status.HTTP_200_OK)

    def delete(self, request, resource_id):
        services.delete_resource(request.user, resource_id)
        return Response({'message': 'Resource deleted successfully'}, status=status.HTTP_200_OK)


class ResourceApprovalView(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def post(self, request, resource_id):
        ser = ResourceApprovalSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        resource = services.set_approval(request.user, resource_id, ser.validated_data['is_approved'])
        return Response(ResourceSerializer(resource).data, status=status.HTTP_200_OK)


class ResourceDownloadView(APIView):
    """GET: download information for an approved resource. The download counter goes up by one."""
    permission_classes = [IsAuthenticated]

    def get(self, request, resource_id):
        return Response(services.download_resource(resource_id, request.user), status=status.HTTP_200_OK)


class ResourceStreamView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, resource_id):
        return Response(services.stream_resource(resource_id, request.user), status=status.HTTP_200_OK)
