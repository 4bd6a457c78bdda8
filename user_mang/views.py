import logging

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from user_mang.serializers import ProfileSerializer, UserSerializer

logger = logging.getLogger('user_mang')


class UserProfileView(APIView):
    """
    The authenticated user's own profile.

    GET   -> full user record including selected topics.
    PATCH -> partial update of first_name, last_name, bio, profile_picture and status.

    Example Request (PATCH /api/v1/users/profile/):
        { "bio": "Night owl, good listener", "status": "AVAILABLE" }
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(UserSerializer(request.user).data, status=status.HTTP_200_OK)

    def patch(self, request):
        serializer = ProfileSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info(f"[UserProfileView] Profile updated: user_id={user.user_id}, fields={list(serializer.validated_data)}")
        return Response(UserSerializer(user).data, status=status.HTTP_200_OK)
