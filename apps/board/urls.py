# apps/board/urls.py

from django.urls import path
from . import views

app_name = 'board'

urlpatterns = [
    # Tarefas
    path('task', views.create_task, name='create_task'),
    path('task/move', views.move_task, name='move_task'),
    path('task/<int:task_id>', views.task_detail, name='task_detail'),
    path('tasks', views.list_tasks, name='list_tasks'),
    path('tasks/search', views.search_tasks, name='search_tasks'),
    path('stats', views.task_stats, name='task_stats'),

    # Boards
    path('board', views.create_board, name='create_board'),
    path('board/<int:board_id>', views.board_detail, name='board_detail'),
    path('boards/urgency', views.board_urgency, name='board_urgency'),
    path('boards/suggested', views.suggested_boards, name='suggested_boards'),
    path('boards/by-ids', views.boards_by_ids, name='boards_by_ids'),

    # Colunas
    path('column', views.create_column, name='create_column'),

    # Subtarefas
    path('subtask', views.create_subtask, name='create_subtask'),
    path('subtask/<int:subtask_id>', views.subtask_detail, name='subtask_detail'),

    # Workspaces
    path('workspace', views.workspaces, name='workspaces'),
]
