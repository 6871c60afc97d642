# apps/board/__init__.py

"""
Board - Aplicação Kanban do Task Board

Funcionalidades:
- Ordem densa de tarefas por coluna (motor de ordenação)
- Criação de tarefas com auto-provisionamento
- API JSON de tarefas, boards, colunas, subtarefas e workspaces
"""
