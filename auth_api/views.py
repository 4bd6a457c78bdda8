"""auth_api views: registration, email verification, login/logout, token refresh and password reset.

Usage: protected endpoints expect ``Authorization: Bearer <access>``. The public
endpoints here skip authentication entirely so a stale access token sent by a
client never turns a login or refresh into a 401.
"""

import logging

from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from auth_api import services
from auth_api.serializers import (
    CompleteProfileSerializer,
    EmailOnlySerializer,
    LoginSerializer,
    RefreshSerializer,
    RegisterSerializer,
    RegisterWithTopicsSerializer,
    ResetPasswordSerializer,
    VerifyEmailSerializer,
)

logger = logging.getLogger('auth_api')


class RegisterView(APIView):
    """Create an unverified account and email a 6-digit verification code.

    Example Request (POST /api/v1/auth/register/)
    {
        "email": "sara@example.com",
        "password": "********",
        "first_name": "Sara",
        "last_name": "Ali"
    }

    Example Response (201)
    { "message": "Registration successful. Please check your email for the verification code.",
      "user_id": "...", "email": "sara@example.com" }

    Returns 409 when the email is taken and 500 when the verification email could not be
    delivered (in that case no account is kept).
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        ser = RegisterSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)
        user = services.register(
            data.pop('email'), data.pop('password'), data.pop('first_name'), data.pop('last_name'), **data
        )
        logger.info(f"[RegisterView] Registered user_id={user.user_id}")
        return Response(
            {
                'message': 'Registration successful. Please check your email for the verification code.',
                'user_id': str(user.user_id),
                'email': user.email,
            },
            status=status.HTTP_201_CREATED,
        )


class RegisterWithTopicsView(APIView):
    """Same as RegisterView plus 3-5 topic ids; the profile is marked completed."""
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        ser = RegisterWithTopicsSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)
        user = services.register_with_topics(
            data.pop('email'), data.pop('password'), data.pop('first_name'), data.pop('last_name'),
            topic_ids=data.pop('topic_ids'), **data
        )
        logger.info(f"[RegisterWithTopicsView] Registered user_id={user.user_id} with topics")
        return Response(
            {
                'message': 'Registration successful. Please check your email for the verification code.',
                'user_id': str(user.user_id),
                'email': user.email,
                'profile_completed': user.profile_completed,
            },
            status=status.HTTP_201_CREATED,
        )


class VerifyEmailView(APIView):
    """GET /verify-email/?email=...&code=123456

    Returns the verified user; 400 when the code is wrong or expired.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        ser = VerifyEmailSerializer(data=request.query_params)
        ser.is_valid(raise_exception=True)
        user = services.verify_email(ser.validated_data['email'], ser.validated_data['code'])
        return Response(
            {'message': 'Email verified successfully', 'user': services.user_payload(user)},
            status=status.HTTP_200_OK,
        )


class ResendVerificationView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        ser = EmailOnlySerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        services.resend_verification(ser.validated_data['email'])
        return Response({'message': 'Verification code sent'}, status=status.HTTP_200_OK)


class LoginView(APIView):
    """Authenticate with email + password and return the user plus JWTs.

    Example Response (200)
    { "user_id": "...", "email": "...", "role": "USER", "status": "ONLINE", ...,
      "access_token": "...", "refresh_token": "...", "expires_in": 900 }

    Returns 401 for invalid credentials or an unverified email.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        ser = LoginSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        resp_data = services.login(ser.validated_data['email'], ser.validated_data['password'])
        logger.info(f"[LoginView] Login success: user_id={resp_data['user_id']}")
        return Response(resp_data, status=status.HTTP_200_OK)


class LogoutView(APIView):
    """Marks the user OFFLINE. Tokens are not blacklisted; clients discard them."""
    permission_classes = [IsAuthenticated]

    def post(self, request):
        services.logout(request.user)
        return Response({'detail': 'Logged out successfully.'}, status=status.HTTP_200_OK)


class RefreshView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        ser = RefreshSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        return Response(services.refresh_tokens(ser.validated_data['refresh_token']), status=status.HTTP_200_OK)


class ForgotPasswordView(APIView):
    """Always answers 200 so the endpoint cannot be used to probe for accounts."""
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        ser = EmailOnlySerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        services.forgot_password(ser.validated_data['email'])
        return Response(
            {'message': 'If an account exists for this email, a reset link has been sent.'},
            status=status.HTTP_200_OK,
        )


class ResetPasswordView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        ser = ResetPasswordSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        services.reset_password(ser.validated_data['token'], ser.validated_data['new_password'])
        return Response({'message': 'Password reset successfully'}, status=status.HTTP_200_OK)


class CompleteProfileView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        ser = CompleteProfileSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        user = services.complete_profile(
            request.user, data['topic_ids'], bio=data.get('bio'), profile_picture=data.get('profile_picture')
        )
        return Response(services.user_payload(user), status=status.HTTP_200_OK)


class ProfileCompletionView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(services.profile_completion(request.user), status=status.HTTP_200_OK)
