# apps/notifications/apps.py

import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class NotificationsConfig(AppConfig):
    """Configuração da app Notifications"""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.notifications'
    verbose_name = 'Notificações'

    def ready(self):
        """
        Inicialização da app
        """
        logger.info("🔔 Notifications App inicializada - fan-out em tempo real habilitado")
