"""media_api views: thin REST layer over the object storage helpers."""

import logging

from django.conf import settings
from rest_framework import status
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from media_api.serializers import (
    Base64UploadSerializer,
    DeleteFileSerializer,
    MultipleUploadSerializer,
    SignatureSerializer,
    SingleUploadSerializer,
    TransformationSerializer,
)
from peerconnect_server.utils import storage

logger = logging.getLogger('media_api')


def _folder(value) -> str:
    """Uploads always land under the project's root folder."""
    root = settings.CLOUDINARY_ROOT_FOLDER
    value = (value or '').strip('/')
    if not value:
        return root
    return value if value == root or value.startswith(f'{root}/') else f'{root}/{value}'


class SingleUploadView(APIView):
    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]

    def post(self, request):
        ser = SingleUploadSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        result = storage.upload_file(ser.validated_data['file'], folder=_folder(ser.validated_data.get('folder')))
        logger.info(f"[SingleUploadView] {request.user.user_id} uploaded {result['public_id']}")
        return Response(result, status=status.HTTP_201_CREATED)


class MultipleUploadView(APIView):
    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]

    def post(self, request):
        data = {'files': request.FILES.getlist('files'), 'folder': request.data.get('folder', '')}
        ser = MultipleUploadSerializer(data=data)
        ser.is_valid(raise_exception=True)
        results = storage.upload_multiple(ser.validated_data['files'], folder=_folder(ser.validated_data.get('folder')))
        logger.info(f"[MultipleUploadView] {request.user.user_id} uploaded {len(results)} files")
        return Response(results, status=status.HTTP_201_CREATED)


class Base64UploadView(APIView):
    permission_classes = [IsAuthenticated]
    parser_classes = [JSONParser]

    def post(self, request):
        ser = Base64UploadSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        result = storage.upload_base64(
            ser.validated_data['base64_string'], folder=_folder(ser.validated_data.get('folder'))
        )
        return Response(result, status=status.HTTP_201_CREATED)


class DeleteFileView(APIView):
    permission_classes = [IsAuthenticated]

    def delete(self, request, public_id):
        ser = DeleteFileSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        deleted = storage.delete_file(public_id, resource_type=ser.validated_data['resource_type'])
        logger.info(f"[DeleteFileView] {request.user.user_id} deleted {public_id}: {deleted}")
        return Response({'public_id': public_id, 'deleted': deleted}, status=status.HTTP_200_OK)


class FileInfoView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, public_id):
        resource_type = request.query_params.get('resource_type', 'image')
        return Response(storage.get_file_info(public_id, resource_type=resource_type), status=status.HTTP_200_OK)


class SignatureView(APIView):
    """Signed parameters so the browser can upload straight to storage."""
    permission_classes = [IsAuthenticated]

    def post(self, request):
        ser = SignatureSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        params = storage.build_upload_signature(
            folder=_folder(ser.validated_data.get('folder')),
            public_id=ser.validated_data.get('public_id') or None,
        )
        return Response(params, status=status.HTTP_200_OK)


class TransformationView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, public_id):
        ser = TransformationSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        url = storage.build_transformation_url(public_id, **ser.validated_data['transformation'])
        return Response({'public_id': public_id, 'url': url}, status=status.HTTP_200_OK)
