from django.urls import path
from .views import (
    NotificationListView,
    UnreadCountView,
    NotificationStatsView,
    MarkReadView,
    MarkAllReadView,
    NotificationDetailView,
    BulkNotificationView,
    SessionReminderView,
    NewResourceNotificationView,
    GroupActivityNotificationView,
)

urlpatterns = [
    path("", NotificationListView.as_view(), name="notification-list"),
    path("unread-count/", UnreadCountView.as_view(), name="notification-unread-count"),
    path("stats/", NotificationStatsView.as_view(), name="notification-stats"),
    path("mark-all-read/", MarkAllReadView.as_view(), name="notification-mark-all-read"),
    path("bulk/", BulkNotificationView.as_view(), name="notification-bulk"),
    path("session-reminder/", SessionReminderView.as_view(), name="notification-session-reminder"),
    path("new-resource/", NewResourceNotificationView.as_view(), name="notification-new-resource"),
    path("group-activity/", GroupActivityNotificationView.as_view(), name="notification-group-activity"),
    path("<uuid:notification_id>/read/", MarkReadView.as_view(), name="notification-read"),
    path("<uuid:notification_id>/", NotificationDetailView.as_view(), name="notification-detail"),
]
