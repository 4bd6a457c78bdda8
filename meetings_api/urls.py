from django.urls import path
from .views import (
    MeetingCreateView,
    MeetingStartView,
    MeetingEndView,
    MeetingDetailView,
    GroupMeetingsView,
    MeetingSummaryView,
)

urlpatterns = [
    path("", MeetingCreateView.as_view(), name="meeting-create"),
    path("group/<uuid:group_id>/", GroupMeetingsView.as_view(), name="meeting-group-list"),
    path("<uuid:meeting_id>/", MeetingDetailView.as_view(), name="meeting-detail"),
    path("<uuid:meeting_id>/start/", MeetingStartView.as_view(), name="meeting-start"),
    path("<uuid:meeting_id>/end/", MeetingEndView.as_view(), name="meeting-end"),
    path("<uuid:meeting_id>/summary/", MeetingSummaryView.as_view(), name="meeting-summary"),
]
