import pytest

from chat_api.registry import reset_connection_registry


@pytest.fixture(autouse=True)
def _fast_password_hasher(settings):
    settings.PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']


@pytest.fixture(autouse=True)
def _fresh_connection_registry(settings):
    settings.CHAT_CONNECTION_REGISTRY = 'chat_api.registry.InMemoryConnectionRegistry'
    reset_connection_registry()
    yield
    reset_connection_registry()
