from django.urls import path
from .views import (
    TopicListCreateView,
    TopicDetailView,
    UserTopicSelectionView,
    UserTopicsView,
    InitialTopicSelectionView,
)

urlpatterns = [
    path("", TopicListCreateView.as_view(), name="topic-list"),
    path("user-selection/", UserTopicSelectionView.as_view(), name="topic-user-selection"),
    path("user/", UserTopicsView.as_view(), name="topic-user"),
    path("user/initial-selection/", InitialTopicSelectionView.as_view(), name="topic-initial-selection"),
    path("<uuid:topic_id>/", TopicDetailView.as_view(), name="topic-detail"),
]
