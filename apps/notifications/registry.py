# apps/notifications/registry.py

import logging
import threading

from django.conf import settings
from django.core.cache import caches

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """
    Mapa user_id -> channel_name das conexões WebSocket ativas

    - register: o último registro para um usuário vence
    - unregister: só remove se o channel_name ainda for o registrado
      (uma reconexão rápida não é apagada pelo disconnect da conexão antiga)
    - lookup: leitura usada pelo fan-out

    O mapa vive no cache do Django (Redis em produção), então todos os
    workers ASGI/WSGI enxergam as mesmas conexões. Com django-redis as
    escritas de um usuário são serializadas por um lock no Redis; com
    um cache local basta o lock do processo.
    """

    key_prefix = 'board:ws:user'

    # Tempo máximo de espera/posse do lock distribuído (segundos)
    lock_timeout = 5

    def __init__(self, cache_alias=None):
        self.cache_alias = cache_alias
        self._local_lock = threading.Lock()

    @property
    def cache(self):
        alias = self.cache_alias or getattr(settings, 'BOARD_CONNECTION_CACHE', 'default')
        return caches[alias]

    def key(self, user_id):
        return f'{self.key_prefix}:{user_id}'

    def _guard(self, user_id):
        """Lock por usuário: o do Redis quando o backend oferece, senão o do processo"""
        cache = self.cache
        if hasattr(cache, 'lock'):
            return cache.lock(f'{self.key(user_id)}:lock', timeout=self.lock_timeout,
                              blocking_timeout=self.lock_timeout)
        return self._local_lock

    def register(self, user_id, channel_name):
        """Retorna o channel_name anterior (ou None)"""
        key = self.key(user_id)
        with self._guard(user_id):
            previous = self.cache.get(key)
            self.cache.set(key, channel_name, timeout=None)
        if previous and previous != channel_name:
            logger.info(f"🔁 Conexão do usuário {user_id} substituída")
        return previous

    def unregister(self, user_id, channel_name):
        """Retorna True se a entrada foi removida"""
        key = self.key(user_id)
        with self._guard(user_id):
            if self.cache.get(key) != channel_name:
                return False
            self.cache.delete(key)
            return True

    def lookup(self, user_id):
        return self.cache.get(self.key(user_id))


# Instância global do registro (Singleton pattern)
registry = ConnectionRegistry()
