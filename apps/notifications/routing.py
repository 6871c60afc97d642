# apps/notifications/routing.py

from django.urls import re_path
from . import consumers

# Rotas WebSocket para notificações em tempo real
websocket_urlpatterns = [
    re_path(r'ws/notifications/$', consumers.NotificationConsumer.as_asgi()),
]
