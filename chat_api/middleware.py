"""Websocket handshake authentication from a bearer access token.

The token is read from the ``token`` query parameter or, failing that, from an
``Authorization: Bearer <token>`` header. ``scope['user']`` is set to the
resolved user or ``AnonymousUser``; rejecting anonymous sockets is up to the
consumer.
"""

from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth.models import AnonymousUser

from auth_api.authentication import get_user_from_access_token


def token_from_scope(scope):
    query = parse_qs(scope.get('query_string', b'').decode())
    token = (query.get('token') or [None])[0]
    if token:
        return token
    for name, value in scope.get('headers', []):
        if name == b'authorization':
            auth = value.decode()
            if auth.lower().startswith('bearer '):
                return auth.split(' ', 1)[1].strip()
    return None


@database_sync_to_async
def _resolve_user(token):
    return get_user_from_access_token(token) or AnonymousUser()


class JWTAuthMiddleware(BaseMiddleware):
    async def __call__(self, scope, receive, send):
        scope = dict(scope)
        scope['user'] = await _resolve_user(token_from_scope(scope))
        return await super().__call__(scope, receive, send)
