# tests/conftest.py

"""Fixtures compartilhadas: usuários, cliente autenticado e registro limpo"""

import json

import pytest
from django.core.cache import caches

from apps.core.models import User


class ApiClient:
    """Cliente de teste que fala JSON com a API"""

    def __init__(self, client):
        self.client = client

    def get(self, path, **params):
        return self.client.get(path, data=params)

    def post(self, path, data=None):
        return self.client.post(path, data=json.dumps(data or {}), content_type='application/json')

    def patch(self, path, data=None):
        return self.client.patch(path, data=json.dumps(data or {}), content_type='application/json')

    def delete(self, path):
        return self.client.delete(path)


@pytest.fixture(autouse=True)
def clean_registry(settings):
    # O mapa de conexões vive no cache
    connections = caches[settings.BOARD_CONNECTION_CACHE]
    connections.clear()
    yield
    connections.clear()


@pytest.fixture
def actor(db):
    return User.objects.create_user(username='ana', email='ana@example.com', password='secret123')


@pytest.fixture
def bob(db):
    return User.objects.create_user(username='bob', email='bob@example.com', password='secret123')


@pytest.fixture
def carol(db):
    return User.objects.create_user(username='carol', email='carol@example.com', password='secret123')


@pytest.fixture
def api(client, actor):
    client.force_login(actor)
    return ApiClient(client)


@pytest.fixture
def anonymous_api(client, db):
    return ApiClient(client)


class FakeChannelLayer:
    """Channel layer que só grava o que foi enviado"""

    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    async def send(self, channel, message):
        if self.fail:
            raise ConnectionError('layer down')
        self.sent.append((channel, message))


@pytest.fixture
def channel_layer(monkeypatch):
    layer = FakeChannelLayer()
    monkeypatch.setattr('apps.notifications.fanout.get_channel_layer', lambda: layer)
    return layer
