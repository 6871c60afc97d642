# apps/notifications/fanout.py

"""
Pipeline de fan-out de notificações

Para cada evento do domínio:
1. resolve a audiência (quem deve saber)
2. persiste uma Notification por destinatário (cada uma no seu savepoint)
3. após o commit, tenta entregar em tempo real via channel layer

A entrega em tempo real é best-effort: sem conexão registrada o usuário
só vê a notificação ao consultar a lista; falhas de transporte são
logadas e engolidas.
"""

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from apps.core.models import Notification, User

from .registry import registry

logger = logging.getLogger(__name__)

# Campos de assunto aceitos e sua chave no payload em tempo real
SUBJECT_FIELDS = {
    'task_id': 'taskId',
    'subtask_id': 'subtaskId',
    'workspace_id': 'workspaceId',
    'board_id': 'boardId',
    'column_id': 'columnId',
}

AUDIENCE_SCOPED = 'scoped'
AUDIENCE_BROADCAST = 'broadcast'


class NotificationFanout:
    """
    Serviço encapsulado de notificações

    As funções de audiência retornam listas de User; ``publish`` cuida
    da deduplicação.
    """

    # === AUDIÊNCIA ===

    def task_assignees(self, task):
        """Usuários atualmente atribuídos à tarefa (move/delete)"""
        return list(User.objects.filter(user_tasks__task=task).order_by('id'))

    def task_audience(self, task, actor):
        """Atribuídos + quem executou a ação (criação de tarefa, subtarefas)"""
        return self.task_assignees(task) + [actor]

    def board_audience(self, workspace, actor):
        """Atribuídos a qualquer tarefa nos boards do workspace + criador"""
        users = User.objects.filter(
            user_tasks__task__column__board__workspace=workspace
        ).distinct().order_by('id')
        return list(users) + [actor]

    def column_audience(self, board, actor):
        """Atribuídos a qualquer tarefa do board + criador"""
        users = User.objects.filter(
            user_tasks__task__column__board=board
        ).distinct().order_by('id')
        return list(users) + [actor]

    def workspace_audience(self, workspace, actor, policy=None):
        """
        Audiência da criação de workspace

        ``scoped`` segue a mesma regra dos boards; ``broadcast`` avisa
        todos os usuários ativos.
        """
        policy = policy or getattr(settings, 'BOARD_WORKSPACE_AUDIENCE', AUDIENCE_SCOPED)
        if policy == AUDIENCE_BROADCAST:
            return list(User.objects.filter(is_active=True).order_by('id')) + [actor]
        return self.board_audience(workspace, actor)

    # === PUBLICAÇÃO ===

    def publish(self, message, recipients, **subject):
        """
        Persiste e agenda a entrega de uma notificação

        Args:
            message: texto já renderizado
            recipients: usuários (repetições e None são ignorados)
            **subject: task_id, subtask_id, workspace_id, board_id, column_id

        Returns:
            Lista de Notification criadas
        """
        unknown = set(subject) - set(SUBJECT_FIELDS)
        if unknown:
            raise TypeError(f"Campos de assunto inválidos: {sorted(unknown)}")

        created = []
        seen = set()
        for user in recipients:
            if user is None or user.id in seen:
                continue
            seen.add(user.id)

            try:
                with transaction.atomic():
                    notification = Notification.objects.create(user=user, message=message, **subject)
            except DatabaseError as e:
                logger.error(f"❌ Falha ao persistir notificação para usuário {user.id}: {e}")
                continue
            created.append(notification)

        if created:
            payload = self.build_payload(message, subject)
            user_ids = [notification.user_id for notification in created]
            transaction.on_commit(lambda: self.push_many(user_ids, payload))

        logger.info(f"🔔 Notificação '{message[:60]}' persistida para {len(created)} usuário(s)")
        return created

    def build_payload(self, message, subject):
        """Evento enviado ao cliente: {message, timestamp, ...ids do assunto}"""
        payload = {
            'message': message,
            'timestamp': timezone.now().isoformat(),
        }
        for field, key in SUBJECT_FIELDS.items():
            if subject.get(field) is not None:
                payload[key] = subject[field]
        return payload

    # === ENTREGA EM TEMPO REAL ===

    def push_many(self, user_ids, payload):
        """Tenta entregar o payload para cada usuário; retorna quantos foram enviados"""
        return sum(1 for user_id in user_ids if self.push(user_id, payload))

    def push(self, user_id, payload):
        """
        Envia para a conexão registrada do usuário, sem retry

        Returns:
            True se a escrita no channel layer foi feita
        """
        channel_name = registry.lookup(user_id)
        if not channel_name:
            return False

        try:
            channel_layer = get_channel_layer()
            async_to_sync(channel_layer.send)(
                channel_name,
                {
                    'type': 'notification.message',
                    'message': payload,
                }
            )
        except Exception as e:
            logger.warning(f"⚠️ Entrega em tempo real falhou para usuário {user_id}: {e}")
            return False

        return True


# Instância global do serviço (Singleton pattern)
fanout = NotificationFanout()
