# apps/core/utils.py

import math
from datetime import timedelta
from typing import Dict, List, Optional

from django.db.models import Count, Max, Min
from django.utils import timezone


def round_half_up(value: float) -> int:
    """
    Arredonda .5 para cima
    Ex: 12.5 -> 13 (round() do Python daria 12)
    """
    return int(math.floor(value + 0.5))


def calculate_subtask_score(subtasks) -> Optional[int]:
    """
    Percentual de conclusão das subtarefas (0-100)

    Retorna None quando não há subtarefas: a tarefa fica fora do ranking,
    não conta como zero.
    """
    subtasks = list(subtasks)
    if not subtasks:
        return None
    return round_half_up(sum(100 if subtask.is_done else 0 for subtask in subtasks) / len(subtasks))


def calculate_board_urgency(limit: int = 4) -> List[Dict]:
    """
    Ranking de boards que pedem atenção

    Para cada tarefa com subtarefas calcula o score de conclusão; o score
    do board é o MAIOR score entre suas tarefas. Boards ordenados do maior
    para o menor, empates pela tarefa atualizada mais recentemente.
    """
    from .models import Task

    tasks = (
        Task.objects
        .select_related('column__board')
        .prefetch_related('subtasks')
        .order_by('-updated_at', '-id')
    )

    per_board = {}
    for task in tasks:
        score = calculate_subtask_score(task.subtasks.all())
        if score is None:
            continue

        board = task.column.board
        entry = per_board.setdefault(board.id, {
            'boardId': board.id,
            'boardName': board.name,
            'score': score,
        })
        entry['score'] = max(entry['score'], score)

    rows = sorted(per_board.values(), key=lambda row: row['score'], reverse=True)
    return rows[:limit]


def calculate_task_stats() -> List[Dict]:
    """
    Quantidade de tarefas por coluna com o nome da coluna

    O boardId acompanha cada linha para diferenciar colunas de mesmo
    nome em boards diferentes.
    """
    from .models import Task

    rows = (
        Task.objects
        .values('column_id', 'column__column_name__name', 'column__board_id')
        .annotate(count=Count('id'))
        .order_by('column_id')
    )

    return [
        {
            'columnId': row['column_id'],
            'columnName': row['column__column_name__name'],
            'boardId': row['column__board_id'],
            'count': row['count'],
        }
        for row in rows
    ]


def calculate_suggested_boards(user, limit: int = 3, activity_days: int = 14, due_days: int = 7) -> List[Dict]:
    """
    Sugestões de boards para o usuário

    Métricas por board:
    - notifCount: notificações do usuário sobre o board nos últimos 14 dias
    - upcomingCount: tarefas atribuídas ao usuário com prazo nos próximos 7 dias
    - commentCount: comentários do usuário nos últimos 14 dias

    score = 2*notif + 3*upcoming + comments + bônus de recência + bônus de prazo
    """
    from .models import Board, Comment, Notification, Task

    now = timezone.now()
    activity_start = now - timedelta(days=activity_days)
    due_limit = now + timedelta(days=due_days)

    metrics = {}

    def entry(board_id):
        return metrics.setdefault(board_id, {
            'notifCount': 0,
            'upcomingCount': 0,
            'commentCount': 0,
            'lastActivity': None,
            'nextDue': None,
        })

    notification_rows = (
        Notification.objects
        .filter(user=user, board_id__isnull=False, created_at__gte=activity_start)
        .values('board_id')
        .annotate(total=Count('id'), last=Max('created_at'))
    )
    for row in notification_rows:
        item = entry(row['board_id'])
        item['notifCount'] = row['total']
        item['lastActivity'] = _latest(item['lastActivity'], row['last'])

    upcoming_rows = (
        Task.objects
        .filter(user_tasks__user=user, time_end__gte=now, time_end__lte=due_limit)
        .values('column__board_id')
        .annotate(total=Count('id', distinct=True), next_due=Min('time_end'))
    )
    for row in upcoming_rows:
        item = entry(row['column__board_id'])
        item['upcomingCount'] = row['total']
        item['nextDue'] = row['next_due']

    comment_rows = (
        Comment.objects
        .filter(user=user, created_at__gte=activity_start)
        .values('task__column__board_id')
        .annotate(total=Count('id'), last=Max('created_at'))
    )
    for row in comment_rows:
        item = entry(row['task__column__board_id'])
        item['commentCount'] = row['total']
        item['lastActivity'] = _latest(item['lastActivity'], row['last'])

    scored = []
    for board_id, item in metrics.items():
        recency_boost = max(0.0, 10 - _days_between(item['lastActivity'], now)) if item['lastActivity'] else 0.0
        due_boost = max(0.0, due_days - _days_between(now, item['nextDue'])) if item['nextDue'] else 0.0
        score = item['notifCount'] * 2 + item['upcomingCount'] * 3 + item['commentCount'] + recency_boost + due_boost
        scored.append((board_id, round(score, 2), item))

    scored.sort(key=lambda row: row[1], reverse=True)
    scored = scored[:limit]

    boards = Board.objects.in_bulk([board_id for board_id, _, _ in scored])
    suggestions = []
    for board_id, score, item in scored:
        board = boards.get(board_id)
        if board is None:
            continue
        suggestions.append({
            **board.to_dict(),
            'score': score,
            'metrics': {
                'notifCount': item['notifCount'],
                'upcomingCount': item['upcomingCount'],
                'commentCount': item['commentCount'],
                'lastActivity': item['lastActivity'].isoformat() if item['lastActivity'] else None,
                'nextDue': item['nextDue'].isoformat() if item['nextDue'] else None,
            },
        })

    return suggestions


def _latest(current, candidate):
    if current is None:
        return candidate
    if candidate is None:
        return current
    return max(current, candidate)


def _days_between(start, end) -> float:
    return (end - start).total_seconds() / 86400
