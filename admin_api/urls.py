from django.urls import path
from .views import (
    DashboardStatsView,
    SystemStatsView,
    ApplicationStatsView,
    PendingApplicationsView,
    AllApplicationsView,
    ApplicationReviewView,
    UserListView,
    UserDetailView,
    UserRoleView,
    UserApprovalView,
    GroupListView,
    GroupDetailView,
    GroupStatusView,
    GroupLeaderView,
    SuitableLeadersView,
    ResourceListView,
    ResourceDetailView,
    ResourceStatusView,
    ResourceStatsView,
    SessionListView,
    SessionDetailView,
    SessionSummaryListView,
    SessionSummaryDetailView,
    GroupSummaryListView,
    GroupSummaryDetailView,
)

urlpatterns = [
    path("stats/", DashboardStatsView.as_view(), name="admin-stats"),
    path("stats/system/", SystemStatsView.as_view(), name="admin-stats-system"),
    path("stats/listener-applications/", ApplicationStatsView.as_view(), name="admin-stats-applications"),

    path("applications/pending/", PendingApplicationsView.as_view(), name="admin-applications-pending"),
    path("applications/", AllApplicationsView.as_view(), name="admin-applications"),
    path("applications/<uuid:application_id>/status/", ApplicationReviewView.as_view(), name="admin-application-status"),
    path("listener-applications/<uuid:application_id>/review/", ApplicationReviewView.as_view(), name="admin-application-review"),

    path("users/", UserListView.as_view(), name="admin-users"),
    path("users/<uuid:user_id>/", UserDetailView.as_view(), name="admin-user-detail"),
    path("users/<uuid:user_id>/role/", UserRoleView.as_view(), name="admin-user-role"),
    path("users/<uuid:user_id>/approval/", UserApprovalView.as_view(), name="admin-user-approval"),

    path("groups/", GroupListView.as_view(), name="admin-groups"),
    path("groups/<uuid:group_id>/", GroupDetailView.as_view(), name="admin-group-detail"),
    path("groups/<uuid:group_id>/status/", GroupStatusView.as_view(), name="admin-group-status"),
    path("groups/<uuid:group_id>/leader/", GroupLeaderView.as_view(), name="admin-group-leader"),
    path("groups/<uuid:group_id>/suitable-leaders/", SuitableLeadersView.as_view(), name="admin-group-suitable-leaders"),

    path("resources/", ResourceListView.as_view(), name="admin-resources"),
    path("resources/stats/", ResourceStatsView.as_view(), name="admin-resource-stats"),
    path("resources/<uuid:resource_id>/", ResourceDetailView.as_view(), name="admin-resource-detail"),
    path("resources/<uuid:resource_id>/status/", ResourceStatusView.as_view(), name="admin-resource-status"),

    path("sessions/", SessionListView.as_view(), name="admin-sessions"),
    path("sessions/<uuid:session_id>/", SessionDetailView.as_view(), name="admin-session-detail"),

    path("summaries/sessions/", SessionSummaryListView.as_view(), name="admin-session-summaries"),
    path("summaries/sessions/<uuid:summary_id>/", SessionSummaryDetailView.as_view(), name="admin-session-summary-detail"),
    path("summaries/groups/", GroupSummaryListView.as_view(), name="admin-group-summaries"),
    path("summaries/groups/<uuid:summary_id>/", GroupSummaryDetailView.as_view(), name="admin-group-summary-detail"),
]
