# apps/core/__init__.py

"""
Core - Aplicação base do Task Board

Contém:
- Models (Workspace, Board, Column, Task, Subtask, Comment, Notification)
- Taxonomia de erros e middleware de tradução para JSON
- Decoradores de autenticação para a API
- Métricas derivadas (urgência, estatísticas, sugestões)
"""
