from rest_framework import serializers

from topics_api.serializers import TopicSerializer
from user_mang.models.custom_user import Custom_User


class UserSummarySerializer(serializers.ModelSerializer):
    """Public identity of a user as embedded in groups, sessions and messages."""
    class Meta:
        model = Custom_User
        fields = ("user_id", "first_name", "last_name", "profile_picture", "role", "status")
        read_only_fields = fields


class UserSerializer(serializers.ModelSerializer):
    topics = TopicSerializer(many=True, read_only=True)

    class Meta:
        model = Custom_User
        fields = (
            "user_id", "email", "first_name", "last_name", "profile_picture", "bio", "role", "status",
            "email_verified", "is_approved", "profile_completed", "topics", "date_joined", "last_modified",
        )
        read_only_fields = fields


class ProfileSerializer(serializers.ModelSerializer):
    """
    Safe profile serializer for client-driven profile updates.
    Whitelisted writable fields: first_name, last_name, bio, profile_picture, status.
    Role, approval, verification and reset fields are intentionally excluded.
    """
    user_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Custom_User
        fields = ("user_id", "email", "first_name", "last_name", "bio", "profile_picture", "status")
        read_only_fields = ("user_id", "email")

    def validate_first_name(self, value: str):
        if not value.strip():
            raise serializers.ValidationError("First name cannot be blank.")
        return value.strip()

    def update(self, instance: Custom_User, validated_data: dict):
        allowed = ["first_name", "last_name", "bio", "profile_picture", "status"]
        update_fields = []
        for key in allowed:
            if key in validated_data:
                setattr(instance, key, validated_data[key])
                update_fields.append(key)
        if update_fields:
            instance.save(update_fields=update_fields + ["last_modified"])
        return instance
