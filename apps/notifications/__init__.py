# apps/notifications/__init__.py

"""
Notifications - Fan-out de notificações

Funcionalidades:
- Resolução de audiência por evento
- Persistência de uma notificação por destinatário
- Entrega best-effort via WebSocket (Channels)
- Listagem, leitura e exclusão pelo próprio usuário
"""
