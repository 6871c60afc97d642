# apps/core/models.py

from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """
    Usuário do sistema

    O núcleo só consome o id e o nome de exibição; cadastro, senha e
    verificação ficam com o provedor de identidade.
    """

    # === METADADOS ===
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'user'

    @property
    def display_name(self):
        """Nome usado nas mensagens de notificação"""
        return self.get_full_name() or self.username

    def to_dict(self):
        return {
            'id': self.id,
            'userName': self.username,
            'email': self.email,
        }

    def __str__(self):
        return self.display_name


class Workspace(models.Model):
    """Workspace - agregador de boards"""

    name = models.CharField(max_length=200, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'workspace'
        ordering = ['created_at', 'id']

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }

    def __str__(self):
        return self.name


class Board(models.Model):
    """Quadro Kanban dentro de um workspace"""

    name = models.CharField(max_length=200)
    workspace = models.ForeignKey(
        Workspace,
        on_delete=models.CASCADE,
        related_name='boards'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'board'
        ordering = ['name', 'id']
        constraints = [
            models.UniqueConstraint(fields=['workspace', 'name'], name='unique_board_name_per_workspace'),
        ]

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'workspaceId': self.workspace_id,
        }

    def __str__(self):
        return f"{self.name} ({self.workspace_id})"


class ColumnName(models.Model):
    """
    Rótulo de coluna deduplicado ("to do", "in progress", ...)
    compartilhado entre boards
    """

    name = models.CharField(max_length=100, unique=True)

    class Meta:
        db_table = 'column_name'
        ordering = ['name']

    def __str__(self):
        return self.name


class Column(models.Model):
    """Coluna do board Kanban"""

    board = models.ForeignKey(
        Board,
        on_delete=models.CASCADE,
        related_name='columns'
    )
    column_name = models.ForeignKey(
        ColumnName,
        on_delete=models.PROTECT,
        related_name='columns'
    )
    order = models.IntegerField(default=0)

    class Meta:
        db_table = 'column'
        ordering = ['order', 'id']
        constraints = [
            models.UniqueConstraint(fields=['board', 'column_name'], name='unique_column_label_per_board'),
        ]

    @property
    def label(self):
        return self.column_name.name

    def to_dict(self):
        return {
            'id': self.id,
            'boardId': self.board_id,
            'columnNameId': self.column_name_id,
            'name': self.column_name.name,
            'order': self.order,
        }

    def __str__(self):
        return f"{self.column_name.name} - board {self.board_id}"


class Task(models.Model):
    """
    Tarefa do board

    O campo ``order`` é a posição densa da tarefa dentro da coluna
    (0..n-1, sem buracos). Só o motor de ordenação deve alterá-lo.
    """

    column = models.ForeignKey(
        Column,
        on_delete=models.CASCADE,
        related_name='tasks'
    )
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    time_start = models.DateTimeField(null=True, blank=True)
    time_end = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=30, default='start')
    priority = models.CharField(max_length=20, default='Medium')
    order = models.IntegerField(default=0)
    assigned_users = models.ManyToManyField(
        User,
        through='UserTask',
        related_name='assigned_tasks'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'task'
        ordering = ['order', 'id']
        indexes = [
            models.Index(fields=['column', 'order']),
        ]

    def to_dict(self, subtasks=False, comments=False, assignees=False):
        """
        Projeção JSON da tarefa

        As relações só entram quando pedidas; quem chama deve ter feito
        o prefetch correspondente.
        """
        data = {
            'id': self.id,
            'columnId': self.column_id,
            'title': self.title,
            'description': self.description,
            'timeStart': self.time_start.isoformat() if self.time_start else None,
            'timeEnd': self.time_end.isoformat() if self.time_end else None,
            'status': self.status,
            'priority': self.priority,
            'order': self.order,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }
        if subtasks:
            data['subtasks'] = [subtask.to_dict() for subtask in self.subtasks.all()]
        if comments:
            data['comments'] = [comment.to_dict() for comment in self.comments.all()]
        if assignees:
            data['assignedUsers'] = [user.to_dict() for user in self.assigned_users.all()]
        return data

    def __str__(self):
        return self.title


class Subtask(models.Model):
    """Subtarefa (checklist) de uma tarefa"""

    task = models.ForeignKey(
        Task,
        on_delete=models.CASCADE,
        related_name='subtasks'
    )
    title = models.CharField(max_length=200)
    is_done = models.BooleanField(default=False)

    class Meta:
        db_table = 'subtask'
        ordering = ['id']

    def to_dict(self):
        return {
            'id': self.id,
            'taskId': self.task_id,
            'title': self.title,
            'isDone': self.is_done,
        }

    def __str__(self):
        return self.title


class Comment(models.Model):
    """Comentários em tarefas"""

    task = models.ForeignKey(
        Task,
        on_delete=models.CASCADE,
        related_name='comments'
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='comments'
    )
    content = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'comment'
        ordering = ['created_at', 'id']

    def to_dict(self):
        return {
            'id': self.id,
            'taskId': self.task_id,
            'userId': self.user_id,
            'userName': self.user.username,
            'content': self.content,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }

    def __str__(self):
        return f"{self.user_id} - {self.content[:30]}"


class UserTask(models.Model):
    """Atribuição usuário x tarefa (sem payload)"""

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='user_tasks'
    )
    task = models.ForeignKey(
        Task,
        on_delete=models.CASCADE,
        related_name='user_tasks'
    )

    class Meta:
        db_table = 'user_task'
        constraints = [
            models.UniqueConstraint(fields=['user', 'task'], name='unique_user_task'),
        ]

    def __str__(self):
        return f"{self.user_id} -> {self.task_id}"


class Notification(models.Model):
    """
    Notificação persistida por destinatário

    Imutável depois de criada, exceto pelo flag ``is_read``.
    """

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='notifications'
    )
    message = models.TextField()
    is_read = models.BooleanField(default=False)

    # Assunto da notificação (ids soltos: o aviso de exclusão sobrevive à tarefa)
    task_id = models.BigIntegerField(null=True, blank=True, db_index=True)
    subtask_id = models.BigIntegerField(null=True, blank=True)
    workspace_id = models.BigIntegerField(null=True, blank=True)
    board_id = models.BigIntegerField(null=True, blank=True)
    column_id = models.BigIntegerField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'notification'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['user', '-created_at']),
        ]

    def to_dict(self):
        return {
            'id': self.id,
            'message': self.message,
            'userId': self.user_id,
            'isRead': self.is_read,
            'taskId': self.task_id,
            'subtaskId': self.subtask_id,
            'workspaceId': self.workspace_id,
            'boardId': self.board_id,
            'columnId': self.column_id,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }

    def __str__(self):
        return f"{self.user_id}: {self.message[:40]}"
