# apps/board/services.py

"""
Orquestração do ciclo de vida de tarefas, boards, colunas e subtarefas

Cada operação de escrita roda numa única transação: ou tudo é gravado
(incluindo as notificações persistidas), ou nada. O envio em tempo real
só acontece depois do commit.
"""

import logging
from contextlib import contextmanager

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Prefetch, Q

from apps.core.exceptions import BoardError, ConflictError, InternalError, NotFound, ValidationError
from apps.core.models import (
    Board, Column, ColumnName, Comment, Notification, Subtask, Task, User, UserTask, Workspace
)
from apps.core.utils import calculate_board_urgency, calculate_suggested_boards, calculate_task_stats
from apps.notifications.fanout import fanout

from .forms import (
    BoardCreateForm, ColumnCreateForm, SubtaskCreateForm, SubtaskUpdateForm,
    TaskCreateForm, TaskMoveForm, WorkspaceCreateForm
)
from .ordering import ordering

logger = logging.getLogger(__name__)

DEFAULT_COMMENT = 'Task created'


@contextmanager
def atomic_operation(failure_message):
    """
    Transação de uma operação do domínio

    Erros do domínio passam como estão (após o rollback); violação de
    unicidade vira ConflictError e qualquer outra falha de banco vira
    InternalError.
    """
    try:
        with transaction.atomic():
            yield
    except BoardError:
        raise
    except IntegrityError as e:
        logger.warning(f"⚠️ {failure_message}: {e}")
        raise ConflictError('Resource already exists') from e
    except DatabaseError as e:
        logger.exception(f"❌ {failure_message}")
        raise InternalError(failure_message) from e


def actor_name(actor):
    return actor.display_name if actor is not None else 'Unknown'


def parse_id_list(values):
    """Converte uma lista de ids vinda do cliente, descartando entradas inválidas"""
    if not isinstance(values, (list, tuple)):
        return []

    ids = []
    for value in values:
        if isinstance(value, bool):
            continue
        try:
            ids.append(int(value))
        except (TypeError, ValueError):
            continue
    return ids


class TaskService:
    """
    Serviço encapsulado de tarefas

    Métodos públicos recebem o usuário autenticado (actor) e o payload
    já decodificado; validações acontecem antes de qualquer escrita.
    """

    def create_task(self, actor, payload):
        """
        Cria uma tarefa com auto-provisionamento

        Resolve (ou cria) Workspace e Board com o mesmo nome do título e a
        coluna padrão "to do"; depois cria a tarefa no fim da coluna,
        atribuições, subtarefas e comentários iniciais.

        Args:
            actor: usuário que está criando
            payload: dict com title, description, timeStart, timeEnd,
                priority, assignedUserIds, subtasks, comments

        Returns:
            Tuple[task, workspace, board, column]
        """
        data = TaskCreateForm(payload).cleaned_or_raise()
        title = data['title']
        assigned_ids = parse_id_list(payload.get('assignedUserIds'))
        subtask_entries = payload.get('subtasks') or []
        comment_entries = payload.get('comments') or []

        with atomic_operation('Error creating task'):
            workspace, board, column = self._provision_chain(title)

            task = Task.objects.create(
                column=column,
                title=title,
                description=data['description'],
                time_start=data['time_start'],
                time_end=data['time_end'],
                priority=data['priority'] or 'Medium',
                status='start',
                order=ordering.append(column),
            )

            # Atribuições: ids desconhecidos são filtrados, não geram erro
            assigned_users = list(User.objects.filter(id__in=assigned_ids).order_by('id'))
            UserTask.objects.bulk_create(
                [UserTask(user=user, task=task) for user in assigned_users],
                ignore_conflicts=True
            )

            Subtask.objects.bulk_create(self._build_subtasks(task, subtask_entries))

            comments = Comment.objects.bulk_create(self._build_comments(task, actor, comment_entries))

            audience = assigned_users + [actor]
            fanout.publish(f'Task "{title}" created by {actor_name(actor)}', audience, task_id=task.id)

            for comment in comments:
                fanout.publish(
                    f'{actor_name(comment.user)} commented on task "{title}": {comment.content}',
                    [user for user in audience if user.id != comment.user_id],
                    task_id=task.id,
                )

        logger.info(f"✅ Tarefa '{title}' criada (id={task.id}) na coluna {column.id}")
        return task, workspace, board, column

    def _provision_chain(self, title):
        """
        Workspace(title) -> Board(title) -> Column("to do")

        get_or_create se apoia nas constraints de unicidade: numa corrida
        entre dois títulos iguais, quem perde relê a linha criada.
        """
        workspace, _ = Workspace.objects.get_or_create(name=title)
        board, _ = Board.objects.get_or_create(workspace=workspace, name=title)
        column_name, _ = ColumnName.objects.get_or_create(name=settings.BOARD_DEFAULT_COLUMN_NAME)
        column, created = Column.objects.get_or_create(
            board=board,
            column_name=column_name,
            defaults={'order': 1}
        )
        if created:
            logger.info(f"🧱 Cadeia provisionada para '{title}': workspace={workspace.id} board={board.id}")
        return workspace, board, column

    def _build_subtasks(self, task, entries):
        """Entradas sem título são ignoradas"""
        if not isinstance(entries, list):
            return []

        subtasks = []
        for entry in entries:
            if not isinstance(entry, dict) or not str(entry.get('title') or '').strip():
                continue
            subtasks.append(Subtask(task=task, title=str(entry['title']).strip(), is_done=bool(entry.get('isDone'))))
        return subtasks

    def _build_comments(self, task, actor, entries):
        """
        Comentários iniciais

        Sem comentários informados, um único "Task created" do autor.
        Autor desconhecido cai para quem está criando a tarefa.
        """
        if not isinstance(entries, list) or not entries:
            return [Comment(task=task, user=actor, content=DEFAULT_COMMENT)]

        valid_entries = [entry for entry in entries if isinstance(entry, dict) and entry.get('content')]
        author_ids = parse_id_list([entry.get('userId') for entry in valid_entries])
        authors = {user.id: user for user in User.objects.filter(id__in=author_ids)}

        comments = []
        for entry in valid_entries:
            author_id = next(iter(parse_id_list([entry.get('userId')])), None)
            author = authors.get(author_id, actor)
            comments.append(Comment(task=task, user=author, content=str(entry['content'])))
        return comments

    def move_task(self, actor, payload):
        """
        Move a tarefa para o fim da coluna informada

        Returns:
            Tuple[task, target_column]
        """
        data = TaskMoveForm(payload).cleaned_or_raise()

        with atomic_operation('Error moving task'):
            task, source_column_id, target = ordering.move(data['task_id'], data['column_id'])
            fanout.publish(
                f'Task "{task.title}" moved to column "{target.label}"',
                fanout.task_assignees(task),
                task_id=task.id,
                column_id=target.id,
            )

        logger.info(f"↔️ Tarefa {task.id} movida de {source_column_id} para {target.id} por {actor.username}")
        return task, target

    def delete_task(self, actor, task_id):
        """
        Exclui a tarefa com cascata e compacta a coluna

        Notificações antigas da tarefa são removidas; o aviso de exclusão
        é gravado por último, na mesma transação.
        """
        with atomic_operation('Error deleting task'):
            task, _ = ordering.lock_task(task_id)
            title = task.title
            assignees = fanout.task_assignees(task)

            Notification.objects.filter(task_id=task.id).delete()
            ordering.remove(task)

            fanout.publish(f'Task "{title}" has been deleted', assignees, task_id=task_id)

        logger.info(f"🗑️ Tarefa {task_id} '{title}' excluída por {actor.username}")

    def get_task(self, task_id):
        task = (
            Task.objects
            .prefetch_related('subtasks', 'comments__user', 'assigned_users')
            .filter(id=task_id)
            .first()
        )
        if task is None:
            raise NotFound('Task not found')
        return task

    def list_tasks(self):
        return (
            Task.objects
            .select_related('column__board', 'column__column_name')
            .prefetch_related('subtasks', 'assigned_users')
            .order_by('order', 'id')
        )

    def search_tasks(self, query):
        """Busca case-insensitive em título ou descrição"""
        query = (query or '').strip()
        if not query:
            raise ValidationError('Query parameter is required')

        return (
            Task.objects
            .filter(Q(title__icontains=query) | Q(description__icontains=query))
            .prefetch_related('subtasks', 'assigned_users')
            .order_by('order', 'id')
        )

    def task_stats(self):
        return calculate_task_stats()

    def board_urgency(self, limit=None):
        return calculate_board_urgency(limit or settings.BOARD_URGENCY_LIMIT)


class BoardService:
    """Workspaces, boards e colunas"""

    def create_workspace(self, actor, payload):
        data = WorkspaceCreateForm(payload).cleaned_or_raise()
        name = data['name']

        with atomic_operation('Failed to create workspace'):
            if Workspace.objects.filter(name=name).exists():
                raise ConflictError('Workspace already exists')

            workspace = Workspace.objects.create(name=name)
            fanout.publish(
                f'{actor_name(actor)} created workspace "{name}"',
                fanout.workspace_audience(workspace, actor),
                workspace_id=workspace.id,
            )

        logger.info(f"✅ Workspace '{name}' criado por {actor.username}")
        return workspace

    def list_workspaces(self):
        return Workspace.objects.order_by('created_at', 'id')

    def create_board(self, actor, payload):
        data = BoardCreateForm(payload).cleaned_or_raise()
        name = data['name']

        workspace = Workspace.objects.filter(id=data['workspace_id']).first()
        if workspace is None:
            raise NotFound('Workspace not found')

        with atomic_operation('Failed to create board'):
            if Board.objects.filter(workspace=workspace, name=name).exists():
                raise ConflictError('Board already exists in this workspace')

            board = Board.objects.create(workspace=workspace, name=name)
            fanout.publish(
                f'{actor_name(actor)} created board "{name}" in workspace "{workspace.name}"',
                fanout.board_audience(workspace, actor),
                workspace_id=workspace.id,
                board_id=board.id,
            )

        logger.info(f"✅ Board '{name}' criado no workspace {workspace.id}")
        return board

    def get_board(self, board_id):
        """Board com colunas -> tarefas -> subtarefas, atribuídos e comentários"""
        tasks = Task.objects.order_by('order', 'id').prefetch_related('subtasks', 'assigned_users', 'comments__user')
        columns = Column.objects.select_related('column_name').order_by('order', 'id').prefetch_related(
            Prefetch('tasks', queryset=tasks)
        )
        board = Board.objects.prefetch_related(Prefetch('columns', queryset=columns)).filter(id=board_id).first()
        if board is None:
            raise NotFound('Board not found')
        return board

    def boards_by_ids(self, ids):
        """Boards existentes na ordem pedida"""
        ids = parse_id_list(ids)
        boards = {board.id: board for board in Board.objects.filter(id__in=ids)}
        return [boards[board_id] for board_id in ids if board_id in boards]

    def suggested_boards(self, actor, limit=None):
        return calculate_suggested_boards(actor, limit or settings.BOARD_SUGGESTED_LIMIT)

    def create_column(self, actor, payload):
        data = ColumnCreateForm(payload).cleaned_or_raise()
        name = data['name']

        board = Board.objects.select_related('workspace').filter(id=data['board_id']).first()
        if board is None:
            raise NotFound('Board not found')

        with atomic_operation('Failed to create column'):
            column_name, _ = ColumnName.objects.get_or_create(name=name)
            if Column.objects.filter(board=board, column_name=column_name).exists():
                raise ConflictError('Column already exists in this board')

            column = Column.objects.create(
                board=board,
                column_name=column_name,
                order=ordering.next_column_order(board),
            )
            fanout.publish(
                f'{actor_name(actor)} created column "{name}" in board "{board.name}"',
                fanout.column_audience(board, actor),
                board_id=board.id,
                column_id=column.id,
            )

        logger.info(f"✅ Coluna '{name}' criada no board {board.id}")
        return column


class SubtaskService:
    """Subtarefas - toda mudança avisa os atribuídos da tarefa e o autor"""

    def create_subtask(self, actor, payload):
        data = SubtaskCreateForm(payload).cleaned_or_raise()

        task = Task.objects.filter(id=data['task_id']).first()
        if task is None:
            raise NotFound('Parent task not found')

        with atomic_operation('Failed to create subtask'):
            subtask = Subtask.objects.create(task=task, title=data['title'], is_done=bool(data['is_done']))
            fanout.publish(
                f'{actor_name(actor)} created subtask "{subtask.title}" in task "{task.title}"',
                fanout.task_audience(task, actor),
                task_id=task.id,
                subtask_id=subtask.id,
            )

        return subtask

    def update_subtask(self, actor, subtask_id, payload):
        data = SubtaskUpdateForm(payload).cleaned_or_raise()

        with atomic_operation('Failed to update subtask'):
            subtask = Subtask.objects.select_for_update().select_related('task').filter(id=subtask_id).first()
            if subtask is None:
                raise NotFound('Subtask not found')

            if data['title']:
                subtask.title = data['title']
            if data['is_done'] is not None:
                subtask.is_done = data['is_done']
            subtask.save()

            if data['is_done'] is not None:
                state = 'complete' if subtask.is_done else 'incomplete'
                message = (
                    f'{actor_name(actor)} marked subtask "{subtask.title}" as {state} '
                    f'in task "{subtask.task.title}"'
                )
            else:
                message = f'{actor_name(actor)} updated subtask "{subtask.title}" in task "{subtask.task.title}"'

            fanout.publish(
                message,
                fanout.task_audience(subtask.task, actor),
                task_id=subtask.task_id,
                subtask_id=subtask.id,
            )

        return subtask

    def delete_subtask(self, actor, subtask_id):
        with atomic_operation('Failed to delete subtask'):
            subtask = Subtask.objects.select_related('task').filter(id=subtask_id).first()
            if subtask is None:
                raise NotFound('Subtask not found')

            task = subtask.task
            title = subtask.title
            audience = fanout.task_audience(task, actor)
            subtask.delete()

            fanout.publish(
                f'{actor_name(actor)} deleted subtask "{title}" in task "{task.title}"',
                audience,
                task_id=task.id,
                subtask_id=subtask_id,
            )


# Instâncias globais dos serviços (Singleton pattern)
task_service = TaskService()
board_service = BoardService()
subtask_service = SubtaskService()
