"""
ASGI config for peerconnect_server project.

HTTP goes to the regular Django application; websockets under ``ws/chat/`` are
authenticated from the bearer token and handed to the chat consumer.
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'peerconnect_server.settings')

django_asgi_app = get_asgi_application()

from channels.routing import ProtocolTypeRouter, URLRouter  # noqa: E402

from chat_api.middleware import JWTAuthMiddleware  # noqa: E402
from chat_api.routing import websocket_urlpatterns  # noqa: E402

application = ProtocolTypeRouter({
    'http': django_asgi_app,
    'websocket': JWTAuthMiddleware(URLRouter(websocket_urlpatterns)),
})
