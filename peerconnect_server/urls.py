"""
URL configuration for peerconnect_server project.

REST apps are mounted under ``api/v1/``; websocket routes live in
``chat_api.routing`` and are wired up in ``asgi.py``.
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView, SpectacularSwaggerView

urlpatterns = [
    path('admin/', admin.site.urls),

    path('api/v1/auth/', include('auth_api.urls')),
    path('api/v1/users/', include('user_mang.urls')),
    path('api/v1/topics/', include('topics_api.urls')),
    path('api/v1/listeners/', include('listeners_api.urls')),
    path('api/v1/chat/', include('chat_api.urls')),
    path('api/v1/groups/', include('groups_api.urls')),
    path('api/v1/meetings/', include('meetings_api.urls')),
    path('api/v1/notifications/', include('notifications_api.urls')),
    path('api/v1/resources/', include('resources_api.urls')),
    path('api/v1/summaries/', include('summaries_api.urls')),
    path('api/v1/media/', include('media_api.urls')),
    path('api/v1/admin/', include('admin_api.urls')),

    # API schema and docs
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('api/redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),
]
