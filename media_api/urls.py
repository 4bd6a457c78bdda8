from django.urls import path
from .views import (
    SingleUploadView,
    MultipleUploadView,
    Base64UploadView,
    DeleteFileView,
    FileInfoView,
    SignatureView,
    TransformationView,
)

urlpatterns = [
    path("upload/single/", SingleUploadView.as_view(), name="media-upload-single"),
    path("upload/multiple/", MultipleUploadView.as_view(), name="media-upload-multiple"),
    path("upload/base64/", Base64UploadView.as_view(), name="media-upload-base64"),
    path("delete/<path:public_id>/", DeleteFileView.as_view(), name="media-delete"),
    path("info/<path:public_id>/", FileInfoView.as_view(), name="media-info"),
    path("signature/", SignatureView.as_view(), name="media-signature"),
    path("transform/<path:public_id>/", TransformationView.as_view(), name="media-transform"),
]
