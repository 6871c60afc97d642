# apps/notifications/inbox.py

from apps.core.exceptions import NotFound
from apps.core.models import Notification


class NotificationInbox:
    """Lado de leitura das notificações persistidas (sempre do próprio usuário)"""

    def list_for_user(self, user, unread_only=False):
        """Notificações do usuário, mais recentes primeiro"""
        notifications = Notification.objects.filter(user=user).order_by('-created_at', '-id')
        if unread_only:
            notifications = notifications.filter(is_read=False)
        return notifications

    def unread_count(self, user):
        return Notification.objects.filter(user=user, is_read=False).count()

    def mark_read(self, user, notification_id):
        """
        Marca como lida - idempotente

        Raises:
            NotFound: se a notificação não existe ou é de outro usuário
        """
        notification = self._get_owned(user, notification_id)
        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=['is_read'])
        return notification

    def delete(self, user, notification_id):
        notification = self._get_owned(user, notification_id)
        notification.delete()

    def _get_owned(self, user, notification_id):
        notification = Notification.objects.filter(id=notification_id, user=user).first()
        if notification is None:
            raise NotFound('Notification not found')
        return notification


# Instância global (Singleton pattern)
inbox = NotificationInbox()
