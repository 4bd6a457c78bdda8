from rest_framework import exceptions
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.tokens import AccessToken


def get_user_from_access_token(raw_token: str):
    """Resolve the user behind a raw access token, or None when the token is invalid.

    Used by the websocket handshake, which has no DRF request to authenticate.
    Refresh tokens are rejected here as they are on the REST side; they are only
    accepted by the token refresh endpoint.
    """
    if not raw_token:
        return None
    try:
        token = AccessToken(raw_token)
        return JWTAuthentication().get_user(token)
    except (TokenError, InvalidToken, exceptions.AuthenticationFailed):
        return None
