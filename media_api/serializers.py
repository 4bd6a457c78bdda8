import os

from django.conf import settings
from rest_framework import serializers

RESOURCE_TYPE_CHOICES = ['image', 'video', 'raw']


def validate_image_upload(upload):
    max_bytes = settings.MEDIA_MAX_UPLOAD_BYTES
    if upload.size > max_bytes:
        raise serializers.ValidationError(f'File exceeds the {max_bytes // (1024 * 1024)}MB limit.')
    ext = os.path.splitext(upload.name or '')[1].lstrip('.').lower()
    if ext not in settings.MEDIA_ALLOWED_IMAGE_EXTENSIONS:
        raise serializers.ValidationError(f'Unsupported file type: .{ext or "?"}')
    return upload


class SingleUploadSerializer(serializers.Serializer):
    file = serializers.FileField(validators=[validate_image_upload])
    folder = serializers.CharField(required=False, allow_blank=True)


class MultipleUploadSerializer(serializers.Serializer):
    files = serializers.ListField(child=serializers.FileField(validators=[validate_image_upload]), allow_empty=False)
    folder = serializers.CharField(required=False, allow_blank=True)

    def validate_files(self, files):
        limit = settings.MEDIA_MAX_FILES_PER_UPLOAD
        if len(files) > limit:
            raise serializers.ValidationError(f'At most {limit} files per upload.')
        return files


class Base64UploadSerializer(serializers.Serializer):
    base64_string = serializers.CharField()
    folder = serializers.CharField(required=False, allow_blank=True)


class DeleteFileSerializer(serializers.Serializer):
    resource_type = serializers.ChoiceField(choices=RESOURCE_TYPE_CHOICES, default='image')


class SignatureSerializer(serializers.Serializer):
    folder = serializers.CharField(required=False, allow_blank=True)
    public_id = serializers.CharField(required=False, allow_blank=True)


class TransformationSerializer(serializers.Serializer):
    transformation = serializers.DictField()
