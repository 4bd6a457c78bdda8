from django.urls import path
from .views import (
    ResourceListCreateView,
    ResourceSearchView,
    PendingResourcesView,
    TopicResourcesView,
    ResourceDetailView,
    ResourceApprovalView,
    ResourceDownloadView,
    ResourceStreamView,
)

urlpatterns = [
    path("", ResourceListCreateView.as_view(), name="resource-list"),
    path("search/", ResourceSearchView.as_view(), name="resource-search"),
    path("admin/pending-approval/", PendingResourcesView.as_view(), name="resource-pending"),
    path("topic/<uuid:topic_id>/", TopicResourcesView.as_view(), name="resource-topic"),
    path("<uuid:resource_id>/", ResourceDetailView.as_view(), name="resource-detail"),
    path("<uuid:resource_id>/approve/", ResourceApprovalView.as_view(), name="resource-approve"),
    path("<uuid:resource_id>/download/", ResourceDownloadView.as_view(), name="resource-download"),
    path("<uuid:resource_id>/stream/", ResourceStreamView.as_view(), name="resource-stream"),
]
