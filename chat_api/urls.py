from django.urls import path
from .views import (
    SessionListCreateView,
    SessionDetailView,
    SessionMessagesView,
    SessionEndView,
    RoomStatsView,
    SystemMessageView,
)

urlpatterns = [
    path("sessions/", SessionListCreateView.as_view(), name="session-list"),
    path("sessions/<uuid:session_id>/", SessionDetailView.as_view(), name="session-detail"),
    path("sessions/<uuid:session_id>/messages/", SessionMessagesView.as_view(), name="session-messages"),
    path("sessions/<uuid:session_id>/end/", SessionEndView.as_view(), name="session-end"),
    path("rooms/<str:room_type>/<uuid:room_id>/stats/", RoomStatsView.as_view(), name="room-stats"),
    path("rooms/<str:room_type>/<uuid:room_id>/system-message/", SystemMessageView.as_view(), name="room-system-message"),
]
