from django.urls import path
from .views import (
    SessionSummaryPdfView,
    SessionSummaryPreviewView,
    SessionSummaryGenerateView,
    SessionSummaryInfoView,
    GroupSummaryPdfView,
    GroupSummaryPreviewView,
    GroupSummaryGenerateView,
    GroupSummaryInfoView,
)

urlpatterns = [
    path("sessions/<uuid:session_id>/summary/", SessionSummaryPdfView.as_view(), name="session-summary-pdf"),
    path("sessions/<uuid:session_id>/summary/preview/", SessionSummaryPreviewView.as_view(), name="session-summary-preview"),
    path("sessions/<uuid:session_id>/summary/generate/", SessionSummaryGenerateView.as_view(), name="session-summary-generate"),
    path("sessions/<uuid:session_id>/summary/info/", SessionSummaryInfoView.as_view(), name="session-summary-info"),
    path("groups/<uuid:group_id>/summary/", GroupSummaryPdfView.as_view(), name="group-summary-pdf"),
    path("groups/<uuid:group_id>/summary/preview/", GroupSummaryPreviewView.as_view(), name="group-summary-preview"),
    path("groups/<uuid:group_id>/summary/generate/", GroupSummaryGenerateView.as_view(), name="group-summary-generate"),
    path("groups/<uuid:group_id>/summary/info/", GroupSummaryInfoView.as_view(), name="group-summary-info"),
]
