# apps/core/admin.py

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.html import format_html

from .models import (
    User, Workspace, Board, ColumnName, Column, Task,
    Subtask, Comment, UserTask, Notification
)


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin customizado para o modelo User"""

    list_display = ['username', 'email', 'get_full_name', 'is_active', 'date_joined']
    list_filter = ['is_staff', 'is_active', 'date_joined']
    search_fields = ['username', 'first_name', 'last_name', 'email']
    ordering = ['-date_joined']


@admin.register(Workspace)
class WorkspaceAdmin(admin.ModelAdmin):
    """Admin para workspaces"""

    list_display = ['name', 'boards_count', 'created_at']
    search_fields = ['name']
    readonly_fields = ['created_at']

    def boards_count(self, obj):
        """Conta boards do workspace"""
        return obj.boards.count()

    boards_count.short_description = 'Boards'


@admin.register(Board)
class BoardAdmin(admin.ModelAdmin):
    """Admin para boards Kanban"""

    list_display = ['name', 'workspace', 'columns_count', 'created_at']
    list_filter = ['workspace']
    search_fields = ['name', 'workspace__name']
    readonly_fields = ['created_at']

    def columns_count(self, obj):
        """Conta colunas do board"""
        return obj.columns.count()

    columns_count.short_description = 'Colunas'


@admin.register(ColumnName)
class ColumnNameAdmin(admin.ModelAdmin):
    list_display = ['name']
    search_fields = ['name']


class TaskInline(admin.TabularInline):
    """Tarefas da coluna, somente leitura (a ordem é do motor de ordenação)"""

    model = Task
    extra = 0
    fields = ['order', 'title', 'status', 'priority']
    readonly_fields = ['order']
    ordering = ['order']

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Column)
class ColumnAdmin(admin.ModelAdmin):
    """Admin para colunas do Kanban"""

    list_display = ['column_name', 'board', 'order', 'tasks_count']
    list_filter = ['board__workspace', 'board']
    search_fields = ['column_name__name', 'board__name']
    ordering = ['board', 'order']

    inlines = [TaskInline]

    def tasks_count(self, obj):
        """Conta tarefas na coluna"""
        return obj.tasks.count()

    tasks_count.short_description = 'Tarefas'


class SubtaskInline(admin.TabularInline):
    model = Subtask
    extra = 0
    fields = ['title', 'is_done']


class CommentInline(admin.TabularInline):
    model = Comment
    extra = 0
    fields = ['user', 'content', 'created_at']
    readonly_fields = ['created_at']

    def has_add_permission(self, request, obj=None):
        """Apenas leitura no admin"""
        return False


class UserTaskInline(admin.TabularInline):
    model = UserTask
    extra = 0


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    """Admin para tarefas"""

    list_display = ['title', 'column', 'order', 'priority', 'status', 'progress_badge', 'updated_at']
    list_filter = ['priority', 'status', 'column__board']
    search_fields = ['title', 'description']
    readonly_fields = ['order', 'created_at', 'updated_at']

    inlines = [SubtaskInline, UserTaskInline, CommentInline]

    def progress_badge(self, obj):
        """Progresso das subtarefas com badge colorido"""
        from .utils import calculate_subtask_score

        score = calculate_subtask_score(obj.subtasks.all())
        if score is None:
            return '-'

        cor = '#10B981' if score == 100 else '#F59E0B' if score >= 50 else '#EF4444'
        return format_html(
            '<span style="background-color: {}; color: white; '
            'padding: 3px 8px; border-radius: 4px; font-size: 11px;">{}%</span>',
            cor, score
        )

    progress_badge.short_description = 'Progresso'


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    """Admin para notificações (imutáveis exceto is_read)"""

    list_display = ['user', 'short_message', 'is_read', 'task_id', 'board_id', 'created_at']
    list_filter = ['is_read', 'created_at']
    search_fields = ['message', 'user__username']
    readonly_fields = [
        'user', 'message', 'task_id', 'subtask_id', 'workspace_id',
        'board_id', 'column_id', 'created_at'
    ]

    def short_message(self, obj):
        return obj.message[:60]

    short_message.short_description = 'Mensagem'
