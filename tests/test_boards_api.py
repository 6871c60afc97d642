# tests/test_boards_api.py

from datetime import timedelta

import pytest
from django.utils import timezone

from apps.core.models import (
    Board, Column, ColumnName, Comment, Notification, Subtask, Task, UserTask, Workspace
)
from apps.core.utils import calculate_subtask_score, round_half_up


def _column(board, label='to do', order=1):
    column_name, _ = ColumnName.objects.get_or_create(name=label)
    return Column.objects.create(board=board, column_name=column_name, order=order)


def _board(name):
    workspace = Workspace.objects.create(name=name)
    return Board.objects.create(workspace=workspace, name=name)


def _task(column, title, done_flags=(), order=0):
    task = Task.objects.create(column=column, title=title, order=order)
    for index, is_done in enumerate(done_flags):
        Subtask.objects.create(task=task, title=f'{title}-{index}', is_done=is_done)
    return task


def _messages(user):
    return list(Notification.objects.filter(user=user).order_by('id').values_list('message', flat=True))


# === Urgência ===

def test_round_half_up_matches_js_rounding():
    assert round_half_up(12.5) == 13
    assert round_half_up(66.666) == 67
    assert round_half_up(0.49) == 0


def test_subtask_score(db):
    column = _column(_board('Score'))
    eight = _task(column, 'eight', [True] + [False] * 7)

    assert calculate_subtask_score(eight.subtasks.all()) == 13
    assert calculate_subtask_score([]) is None


def test_board_urgency_uses_best_task_score(api):
    x_column = _column(_board('X'))
    _task(x_column, 'x1', [True, True, False], order=0)
    _task(x_column, 'x2', [False], order=1)
    _task(x_column, 'x3', order=2)
    y_column = _column(_board('Y'))
    _task(y_column, 'y1', [True])
    z_column = _column(_board('Z'))
    _task(z_column, 'z1')

    data = api.get('/api/home/boards/urgency').json()

    assert [(row['boardName'], row['score']) for row in data] == [('Y', 100), ('X', 67)]
    assert api.get('/api/home/boards/urgency', limit=1).json()[0]['boardName'] == 'Y'


def test_board_urgency_zero_score_is_ranked(api):
    _task(_column(_board('Idle')), 'idle', [False, False])

    data = api.get('/api/home/boards/urgency').json()

    assert [(row['boardName'], row['score']) for row in data] == [('Idle', 0)]


def test_board_urgency_rejects_bad_limit(api):
    response = api.get('/api/home/boards/urgency', limit='zero')

    assert response.status_code == 400


# === Boards ===

def test_create_board_notifies_workspace_assignees(api, actor, bob, carol):
    board = _board('Team')
    UserTask.objects.create(user=bob, task=_task(_column(board), 'work'))

    response = api.post('/api/home/board', {'name': 'Roadmap', 'workspaceId': board.workspace_id})

    assert response.status_code == 201
    created = response.json()['board']
    assert created['name'] == 'Roadmap' and created['workspaceId'] == board.workspace_id
    expected = 'ana created board "Roadmap" in workspace "Team"'
    assert _messages(bob) == [expected]
    assert _messages(actor) == [expected]
    assert _messages(carol) == []
    notification = Notification.objects.get(user=bob)
    assert (notification.workspace_id, notification.board_id) == (board.workspace_id, created['id'])


def test_create_board_errors(api):
    workspace = Workspace.objects.create(name='Dup')
    Board.objects.create(workspace=workspace, name='Main')

    missing = api.post('/api/home/board', {'name': 'Only name'})
    unknown = api.post('/api/home/board', {'name': 'Ghost', 'workspaceId': 999999})
    duplicate = api.post('/api/home/board', {'name': 'Main', 'workspaceId': workspace.id})

    assert missing.status_code == 400
    assert missing.json() == {'error': 'Name & workspaceId required'}
    assert unknown.status_code == 404
    assert unknown.json() == {'error': 'Workspace not found'}
    assert duplicate.status_code == 409


def test_board_detail_nests_columns_tasks_and_subtasks(api, bob):
    board = _board('Nested')
    todo = _column(board, 'to do', order=1)
    doing = _column(board, 'doing', order=2)
    task = _task(todo, 'first', [True])
    UserTask.objects.create(user=bob, task=task)
    Comment.objects.create(task=task, user=bob, content='hello')

    data = api.get(f'/api/home/board/{board.id}').json()

    assert [column['name'] for column in data['columns']] == ['to do', 'doing']
    assert data['columns'][1]['id'] == doing.id
    task_data = data['columns'][0]['tasks'][0]
    assert task_data['title'] == 'first'
    assert [subtask['isDone'] for subtask in task_data['subtasks']] == [True]
    assert [comment['userName'] for comment in task_data['comments']] == ['bob']
    assert [user['id'] for user in task_data['assignedUsers']] == [bob.id]


def test_board_detail_not_found(api):
    response = api.get('/api/home/board/999999')

    assert response.status_code == 404
    assert response.json() == {'error': 'Board not found'}


def test_boards_by_ids_keeps_requested_order(api):
    first = _board('First')
    second = _board('Second')

    data = api.get('/api/home/boards/by-ids', ids=f'{second.id},999999,x,{first.id}').json()

    assert [board['id'] for board in data] == [second.id, first.id]


def test_suggested_boards_ranks_recent_activity(api, actor):
    busy = _board('Busy')
    quiet = _board('Quiet')
    busy_task = _task(_column(busy), 'busy')
    quiet_task = _task(_column(quiet), 'quiet')
    Comment.objects.create(task=busy_task, user=actor, content='one')
    Comment.objects.create(task=busy_task, user=actor, content='two')
    Notification.objects.create(user=actor, message='m', board_id=busy.id)
    quiet_task.time_end = timezone.now() + timedelta(days=3)
    quiet_task.save()
    UserTask.objects.create(user=actor, task=quiet_task)

    data = api.get('/api/home/boards/suggested').json()

    assert [row['id'] for row in data] == [busy.id, quiet.id]
    assert data[0]['metrics']['commentCount'] == 2
    assert data[0]['metrics']['notifCount'] == 1
    assert data[1]['metrics']['upcomingCount'] == 1
    assert data[1]['score'] == pytest.approx(7, abs=0.01)


def test_suggested_boards_ignores_other_users(api, bob):
    task = _task(_column(_board('Theirs')), 'theirs')
    Comment.objects.create(task=task, user=bob, content='mine')

    assert api.get('/api/home/boards/suggested').json() == []


# === Colunas ===

def test_create_column_appends_after_existing(api, actor, bob):
    board = _board('Columns')
    UserTask.objects.create(user=bob, task=_task(_column(board), 'work'))

    response = api.post('/api/home/column', {'name': 'review', 'boardId': board.id})

    assert response.status_code == 201
    column = response.json()['column']
    assert column['name'] == 'review'
    assert column['order'] == 2
    assert _messages(bob) == ['ana created column "review" in board "Columns"']
    assert Notification.objects.get(user=bob).column_id == column['id']


def test_create_column_reuses_label_and_rejects_duplicates(api):
    first = _board('One')
    second = _board('Two')

    assert api.post('/api/home/column', {'name': 'qa', 'boardId': first.id}).status_code == 201
    assert api.post('/api/home/column', {'name': 'qa', 'boardId': second.id}).status_code == 201
    duplicate = api.post('/api/home/column', {'name': 'qa', 'boardId': first.id})
    unknown = api.post('/api/home/column', {'name': 'qa', 'boardId': 999999})

    assert ColumnName.objects.filter(name='qa').count() == 1
    assert duplicate.status_code == 409
    assert unknown.status_code == 404
    assert unknown.json() == {'error': 'Board not found'}


# === Subtarefas ===

def test_subtask_lifecycle_notifies_task_audience(api, actor, bob):
    task = _task(_column(_board('Subs')), 'Parent')
    UserTask.objects.create(user=bob, task=task)

    created = api.post('/api/home/subtask', {'taskId': task.id, 'title': 'check'})
    subtask_id = created.json()['subtask']['id']
    completed = api.post(f'/api/home/subtask/{subtask_id}', {'isDone': True})
    renamed = api.post(f'/api/home/subtask/{subtask_id}', {'title': 'verify'})
    deleted = api.delete(f'/api/home/subtask/{subtask_id}')

    assert created.status_code == 201
    assert completed.json()['subtask']['isDone'] is True
    assert renamed.json()['subtask']['title'] == 'verify'
    assert deleted.status_code == 200
    assert not Subtask.objects.filter(id=subtask_id).exists()
    assert _messages(bob) == [
        'ana created subtask "check" in task "Parent"',
        'ana marked subtask "check" as complete in task "Parent"',
        'ana updated subtask "verify" in task "Parent"',
        'ana deleted subtask "verify" in task "Parent"',
    ]
    assert _messages(actor) == _messages(bob)
    assert set(Notification.objects.values_list('subtask_id', flat=True)) == {subtask_id}


def test_subtask_errors(api):
    missing = api.post('/api/home/subtask', {'title': 'orphan'})
    unknown_parent = api.post('/api/home/subtask', {'taskId': 999999, 'title': 'orphan'})
    unknown_subtask = api.post('/api/home/subtask/999999', {'isDone': True})

    assert missing.status_code == 400
    assert unknown_parent.status_code == 404
    assert unknown_parent.json() == {'error': 'Parent task not found'}
    assert unknown_subtask.status_code == 404


# === Workspaces ===

def test_create_workspace_scoped_audience(api, actor, bob):
    response = api.post('/api/home/workspace', {'name': 'Fresh'})

    assert response.status_code == 201
    assert _messages(actor) == ['ana created workspace "Fresh"']
    assert _messages(bob) == []


def test_create_workspace_broadcast_audience(api, actor, bob, carol, settings):
    settings.BOARD_WORKSPACE_AUDIENCE = 'broadcast'

    api.post('/api/home/workspace', {'name': 'Everyone'})

    for user in (actor, bob, carol):
        assert _messages(user) == ['ana created workspace "Everyone"']


def test_workspace_list_and_duplicate(api):
    api.post('/api/home/workspace', {'name': 'Alpha'})
    duplicate = api.post('/api/home/workspace', {'name': 'Alpha'})
    missing = api.post('/api/home/workspace', {})

    assert duplicate.status_code == 409
    assert duplicate.json() == {'error': 'Workspace already exists'}
    assert missing.status_code == 400
    assert [workspace['name'] for workspace in api.get('/api/home/workspace').json()] == ['Alpha']
