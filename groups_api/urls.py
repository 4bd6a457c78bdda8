from django.urls import path
from .views import (
    GroupListCreateView,
    MyGroupsView,
    GroupDetailView,
    JoinGroupView,
    LeaveGroupView,
    GroupMessagesView,
    CanSendMessageView,
    ListenerResponseView,
    AnonymousNameView,
)

urlpatterns = [
    path("", GroupListCreateView.as_view(), name="group-list"),
    path("mine/", MyGroupsView.as_view(), name="group-mine"),
    path("<uuid:group_id>/", GroupDetailView.as_view(), name="group-detail"),
    path("<uuid:group_id>/join/", JoinGroupView.as_view(), name="group-join"),
    path("<uuid:group_id>/leave/", LeaveGroupView.as_view(), name="group-leave"),
    path("<uuid:group_id>/messages/", GroupMessagesView.as_view(), name="group-messages"),
    path("<uuid:group_id>/can-send-message/", CanSendMessageView.as_view(), name="group-can-send"),
    path("<uuid:group_id>/listener-response/", ListenerResponseView.as_view(), name="group-listener-response"),
    path("<uuid:group_id>/anonymous-name/", AnonymousNameView.as_view(), name="group-anonymous-name"),
]
