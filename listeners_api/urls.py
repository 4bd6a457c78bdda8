from django.urls import path
from .views import (
    ListenerMatchesView,
    ListenerRecommendationsView,
    TopicListenersView,
    ApplyView,
    MyApplicationView,
    ApplicationUpdateView,
    ApplicationWithdrawView,
    ApplicationListView,
    ApplicationsByStatusView,
)

urlpatterns = [
    path("matches/", ListenerMatchesView.as_view(), name="listener-matches"),
    path("recommendations/", ListenerRecommendationsView.as_view(), name="listener-recommendations"),
    path("topic/<uuid:topic_id>/", TopicListenersView.as_view(), name="listener-topic"),
    path("apply/", ApplyView.as_view(), name="listener-apply"),
    path("application/my/", MyApplicationView.as_view(), name="listener-application-mine"),
    path("application/update/", ApplicationUpdateView.as_view(), name="listener-application-update"),
    path("application/withdraw/", ApplicationWithdrawView.as_view(), name="listener-application-withdraw"),
    path("applications/", ApplicationListView.as_view(), name="listener-application-list"),
    path("applications/status/<str:application_status>/", ApplicationsByStatusView.as_view(), name="listener-application-status"),
]
