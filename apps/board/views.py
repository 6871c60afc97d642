# apps/board/views.py

import json

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from apps.core.exceptions import ValidationError
from apps.core.permissions import api_login_required

from .services import board_service, subtask_service, task_service


# === Métodos auxiliares ===

def parse_json_body(request):
    """Decodifica o corpo JSON; corpo vazio vira dict vazio"""
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError('Invalid JSON body')
    if not isinstance(data, dict):
        raise ValidationError('JSON body must be an object')
    return data


def parse_limit(request, default):
    raw = request.GET.get('limit')
    if raw in (None, ''):
        return default
    try:
        limit = int(raw)
    except ValueError:
        raise ValidationError('limit must be a positive integer')
    if limit < 1:
        raise ValidationError('limit must be a positive integer')
    return limit


def serialize_task_summary(task):
    """Tarefa com coluna/board, subtarefas e atribuídos (listagem)"""
    data = task.to_dict(subtasks=True, assignees=True)
    data['column'] = task.column.to_dict()
    data['board'] = task.column.board.to_dict()
    return data


def serialize_board(board):
    """Board -> colunas -> tarefas completas"""
    data = board.to_dict()
    data['columns'] = []
    for column in board.columns.all():
        column_data = column.to_dict()
        column_data['tasks'] = [
            task.to_dict(subtasks=True, comments=True, assignees=True)
            for task in column.tasks.all()
        ]
        data['columns'].append(column_data)
    return data


# === Tarefas ===

@api_login_required
@require_POST
@csrf_exempt
def create_task(request):
    """
    Cria tarefa com auto-provisionamento de workspace/board/coluna
    e dispara as notificações de criação
    """
    task, workspace, board, column = task_service.create_task(request.user, parse_json_body(request))

    return JsonResponse({
        'message': 'Task created',
        'task': task.to_dict(),
        'workspaceId': workspace.id,
        'boardId': board.id,
        'columnId': column.id,
    }, status=201)


@api_login_required
@require_http_methods(['GET', 'DELETE'])
@csrf_exempt
def task_detail(request, task_id):
    """
    GET: tarefa com subtarefas, comentários e atribuídos
    DELETE: exclusão em cascata
    """
    if request.method == 'DELETE':
        task_service.delete_task(request.user, task_id)
        return JsonResponse({'message': 'Task deleted successfully'})

    task = task_service.get_task(task_id)
    return JsonResponse(task.to_dict(subtasks=True, comments=True, assignees=True))


@api_login_required
@require_http_methods(['PATCH'])
@csrf_exempt
def move_task(request):
    """
    Move tarefa para o fim de outra coluna (drag-and-drop)
    """
    task, column = task_service.move_task(request.user, parse_json_body(request))

    return JsonResponse({
        'message': 'Task moved',
        'taskId': task.id,
        'columnId': column.id,
        'order': task.order,
    })


@api_login_required
@require_GET
def list_tasks(request):
    tasks = [serialize_task_summary(task) for task in task_service.list_tasks()]
    return JsonResponse(tasks, safe=False)


@api_login_required
@require_GET
def search_tasks(request):
    """
    Busca tarefas por título ou descrição
    """
    tasks = task_service.search_tasks(request.GET.get('query'))
    return JsonResponse([task.to_dict(subtasks=True, assignees=True) for task in tasks], safe=False)


@api_login_required
@require_GET
def task_stats(request):
    return JsonResponse(task_service.task_stats(), safe=False)


@api_login_required
@require_GET
def board_urgency(request):
    """
    Ranking de boards pelo progresso das subtarefas
    """
    limit = parse_limit(request, default=None)
    return JsonResponse(task_service.board_urgency(limit), safe=False)


# === Boards ===

@api_login_required
@require_POST
@csrf_exempt
def create_board(request):
    board = board_service.create_board(request.user, parse_json_body(request))
    return JsonResponse({'message': 'Board created', 'board': board.to_dict()}, status=201)


@api_login_required
@require_GET
def board_detail(request, board_id):
    board = board_service.get_board(board_id)
    return JsonResponse(serialize_board(board))


@api_login_required
@require_GET
def suggested_boards(request):
    """
    Sugestões de boards a partir da atividade recente do usuário
    """
    limit = parse_limit(request, default=None)
    return JsonResponse(board_service.suggested_boards(request.user, limit), safe=False)


@api_login_required
@require_GET
def boards_by_ids(request):
    """
    Boards fixados pelo cliente (?ids=1,2,3), na ordem pedida
    """
    ids = [value.strip() for value in request.GET.get('ids', '').split(',') if value.strip()]
    boards = board_service.boards_by_ids(ids)
    return JsonResponse([board.to_dict() for board in boards], safe=False)


# === Colunas ===

@api_login_required
@require_POST
@csrf_exempt
def create_column(request):
    column = board_service.create_column(request.user, parse_json_body(request))
    return JsonResponse({'message': 'Column created', 'column': column.to_dict()}, status=201)


# === Subtarefas ===

@api_login_required
@require_POST
@csrf_exempt
def create_subtask(request):
    subtask = subtask_service.create_subtask(request.user, parse_json_body(request))
    return JsonResponse({'message': 'Subtask created', 'subtask': subtask.to_dict()}, status=201)


@api_login_required
@require_http_methods(['POST', 'DELETE'])
@csrf_exempt
def subtask_detail(request, subtask_id):
    """
    POST: atualiza título e/ou isDone
    DELETE: remove a subtarefa
    """
    if request.method == 'DELETE':
        subtask_service.delete_subtask(request.user, subtask_id)
        return JsonResponse({'message': 'Subtask deleted successfully'})

    subtask = subtask_service.update_subtask(request.user, subtask_id, parse_json_body(request))
    return JsonResponse({'message': 'Subtask updated successfully', 'subtask': subtask.to_dict()})


# === Workspaces ===

@api_login_required
@require_http_methods(['GET', 'POST'])
@csrf_exempt
def workspaces(request):
    if request.method == 'POST':
        workspace = board_service.create_workspace(request.user, parse_json_body(request))
        return JsonResponse({'message': 'Workspace created', 'workspace': workspace.to_dict()}, status=201)

    return JsonResponse([workspace.to_dict() for workspace in board_service.list_workspaces()], safe=False)
