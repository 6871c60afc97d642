# apps/__init__.py

"""
Task Board - Aplicações Django

Este pacote contém todas as aplicações do sistema:
- core: Models, erros do domínio, permissões e métricas
- board: Motor de ordenação, orquestração de tarefas e API JSON
- notifications: Fan-out de notificações e WebSocket
"""

__version__ = '0.1.0'
