# apps/notifications/consumers.py

import json
import logging

from asgiref.sync import sync_to_async
from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from django.utils import timezone

from apps.core.exceptions import NotFound

from .inbox import inbox
from .registry import registry

logger = logging.getLogger(__name__)


class NotificationConsumer(AsyncWebsocketConsumer):
    """
    Consumer de notificações pessoais do usuário

    A conexão autenticada é registrada no ConnectionRegistry
    (user_id -> channel_name); o fan-out envia direto para o
    channel_name registrado.
    """

    async def connect(self):
        """
        Aceita apenas usuários autenticados e registra a conexão
        """
        self.user = self.scope['user']

        if not self.user.is_authenticated:
            logger.warning("❌ Conexão de notificações rejeitada - usuário não autenticado")
            await self.close()
            return

        await sync_to_async(registry.register)(self.user.id, self.channel_name)
        await self.accept()
        logger.info(f"🔔 Notificações conectadas para {self.user.username}")

    async def disconnect(self, close_code):
        """
        Remove o registro apenas se ainda pertence a esta conexão
        """
        user = getattr(self, 'user', None)
        if user is None or not user.is_authenticated:
            return

        await sync_to_async(registry.unregister)(user.id, self.channel_name)
        logger.info(f"🔕 Notificações desconectadas para {user.username}")

    async def receive(self, text_data=None, bytes_data=None):
        """
        Processa comandos do cliente: register, ping, mark_read
        """
        try:
            data = json.loads(text_data or '{}')
        except json.JSONDecodeError:
            logger.error(f"❌ JSON inválido recebido via WebSocket de {self.user.username}")
            await self.send_json_message({'type': 'error', 'error': 'Invalid JSON'})
            return

        message_type = data.get('type')

        # Reconexão do cliente: a última registrada vence
        if message_type == 'register':
            await sync_to_async(registry.register)(self.user.id, self.channel_name)
            await self.send_json_message({'type': 'registered', 'userId': self.user.id})

        # Heartbeat/Ping
        elif message_type == 'ping':
            await self.send_json_message({'type': 'pong', 'timestamp': self.get_timestamp()})

        # Marcar notificação como lida
        elif message_type == 'mark_read':
            notification_id = data.get('notification_id')
            if await self.mark_notification_read(notification_id):
                await self.send_json_message({'type': 'marked_read', 'notification_id': notification_id})
            else:
                await self.send_json_message({'type': 'error', 'error': 'Notification not found'})

    async def notification_message(self, event):
        """
        Envia notificação para o usuário
        """
        await self.send_json_message({
            'type': 'notification',
            'message': event['message'],
        })

    # === Métodos auxiliares ===

    async def send_json_message(self, payload):
        await self.send(text_data=json.dumps(payload))

    @database_sync_to_async
    def mark_notification_read(self, notification_id):
        """
        Marca notificação como lida (só as do próprio usuário)
        """
        try:
            inbox.mark_read(self.user, int(notification_id))
        except (TypeError, ValueError, NotFound):
            return False
        return True

    def get_timestamp(self):
        return timezone.now().isoformat()
