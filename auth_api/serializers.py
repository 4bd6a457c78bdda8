from django.conf import settings
from rest_framework import serializers

from user_mang.models.custom_user import Custom_User


class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=settings.PASSWORD_MIN_LENGTH)
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    profile_picture = serializers.URLField(required=False, allow_blank=True)
    bio = serializers.CharField(required=False, allow_blank=True)
    role = serializers.ChoiceField(
        choices=[Custom_User.Role.USER, Custom_User.Role.LISTENER], required=False
    )


class RegisterWithTopicsSerializer(RegisterSerializer):
    topic_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)


class VerifyEmailSerializer(serializers.Serializer):
    email = serializers.EmailField()
    code = serializers.RegexField(r'^\d{6}$', error_messages={'invalid': 'Code must be 6 digits.'})


class EmailOnlySerializer(serializers.Serializer):
    email = serializers.EmailField()


class RefreshSerializer(serializers.Serializer):
    refresh_token = serializers.CharField()


class ResetPasswordSerializer(serializers.Serializer):
    token = serializers.CharField()
    new_password = serializers.CharField(write_only=True, min_length=settings.PASSWORD_MIN_LENGTH)


class CompleteProfileSerializer(serializers.Serializer):
    topic_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)
    bio = serializers.CharField(required=False, allow_blank=True)
    profile_picture = serializers.URLField(required=False, allow_blank=True)
