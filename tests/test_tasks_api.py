# tests/test_tasks_api.py

from unittest import mock

from django.db import DatabaseError

from apps.core.models import (
    Board, Column, ColumnName, Comment, Notification, Subtask, Task, UserTask, Workspace
)
from apps.notifications.registry import registry

TASK_URL = '/api/home/task'
MOVE_URL = '/api/home/task/move'


def _messages(user):
    return list(Notification.objects.filter(user=user).order_by('id').values_list('message', flat=True))


def _create(api, **payload):
    payload.setdefault('title', 'Launch')
    response = api.post(TASK_URL, payload)
    assert response.status_code == 201, response.content
    return response.json()


def test_create_task_provisions_workspace_board_and_column(api, actor):
    body = _create(api, title='Launch', description='ship it', priority='High')

    assert body['message'] == 'Task created'
    workspace = Workspace.objects.get(id=body['workspaceId'])
    board = Board.objects.get(id=body['boardId'])
    column = Column.objects.select_related('column_name').get(id=body['columnId'])
    assert workspace.name == 'Launch'
    assert board.name == 'Launch' and board.workspace_id == workspace.id
    assert column.label == 'to do' and column.order == 1 and column.board_id == board.id

    task = body['task']
    assert task['order'] == 0
    assert task['status'] == 'start'
    assert task['priority'] == 'High'
    assert task['description'] == 'ship it'


def test_create_task_defaults(api, actor):
    body = _create(api, title='Defaults')

    task = Task.objects.get(id=body['task']['id'])
    assert task.priority == 'Medium'
    assert task.description == ''
    comments = list(task.comments.all())
    assert [(comment.user_id, comment.content) for comment in comments] == [(actor.id, 'Task created')]


def test_same_title_reuses_provisioned_chain(api):
    first = _create(api, title='Repeat')
    second = _create(api, title='Repeat')

    assert Workspace.objects.filter(name='Repeat').count() == 1
    assert Board.objects.filter(name='Repeat').count() == 1
    assert ColumnName.objects.filter(name='to do').count() == 1
    assert first['columnId'] == second['columnId']
    assert (first['task']['order'], second['task']['order']) == (0, 1)


def test_unknown_assignees_are_filtered(api, bob):
    body = _create(api, assignedUserIds=[bob.id, 999999, 'abc', bob.id])

    assert list(UserTask.objects.filter(task_id=body['task']['id']).values_list('user_id', flat=True)) == [bob.id]


def test_malformed_subtasks_are_skipped(api):
    body = _create(api, subtasks=[{'title': 'design', 'isDone': True}, {'title': ''}, {'isDone': True}, 'x'])

    subtasks = list(Subtask.objects.filter(task_id=body['task']['id']).values_list('title', 'is_done'))
    assert subtasks == [('design', True)]


def test_initial_comments_with_unknown_author_fall_back_to_actor(api, actor, bob):
    body = _create(api, comments=[
        {'userId': bob.id, 'content': 'on it'},
        {'userId': 999999, 'content': 'who?'},
        {'content': ''},
    ])

    comments = list(Comment.objects.filter(task_id=body['task']['id']).order_by('id').values_list('user_id', 'content'))
    assert comments == [(bob.id, 'on it'), (actor.id, 'who?')]


def test_create_task_notifies_assignees_and_creator(api, actor, bob, carol):
    body = _create(api, title='Notify', assignedUserIds=[bob.id])

    assert _messages(bob) == [
        'Task "Notify" created by ana',
        'ana commented on task "Notify": Task created',
    ]
    assert _messages(actor) == ['Task "Notify" created by ana']
    assert _messages(carol) == []
    assert set(Notification.objects.values_list('task_id', flat=True)) == {body['task']['id']}


def test_create_task_requires_title(api):
    response = api.post(TASK_URL, {'description': 'no title'})

    assert response.status_code == 400
    assert response.json() == {'error': 'title is required'}
    assert Workspace.objects.count() == 0


def test_create_task_rejects_inverted_time_range(api):
    response = api.post(TASK_URL, {
        'title': 'Backwards',
        'timeStart': '2026-05-10T10:00:00Z',
        'timeEnd': '2026-05-01T10:00:00Z',
    })

    assert response.status_code == 400
    assert Task.objects.count() == 0


def test_create_task_rejects_invalid_json(api):
    response = api.client.post(TASK_URL, data='{not json', content_type='application/json')

    assert response.status_code == 400
    assert response.json() == {'error': 'Invalid JSON body'}


def test_create_task_rolls_back_on_failure(api):
    with mock.patch.object(Subtask.objects, 'bulk_create', side_effect=DatabaseError('boom')):
        response = api.post(TASK_URL, {'title': 'Broken', 'subtasks': [{'title': 'a'}]})

    assert response.status_code == 500
    assert response.json() == {'error': 'Error creating task'}
    assert Workspace.objects.count() == 0
    assert Task.objects.count() == 0
    assert Notification.objects.count() == 0


def test_move_task_endpoint(api, bob):
    body = _create(api, title='Move me', assignedUserIds=[bob.id])
    column = api.post('/api/home/column', {'name': 'doing', 'boardId': body['boardId']}).json()['column']

    response = api.patch(MOVE_URL, {'taskId': body['task']['id'], 'columnId': column['id']})

    assert response.status_code == 200
    assert response.json() == {
        'message': 'Task moved',
        'taskId': body['task']['id'],
        'columnId': column['id'],
        'order': 0,
    }
    assert _messages(bob)[-1] == 'Task "Move me" moved to column "doing"'


def test_move_push_carries_destination_column(api, bob, channel_layer, django_capture_on_commit_callbacks):
    body = _create(api, title='Live', assignedUserIds=[bob.id])
    column = api.post('/api/home/column', {'name': 'done', 'boardId': body['boardId']}).json()['column']
    registry.register(bob.id, 'chan-bob')

    with django_capture_on_commit_callbacks(execute=True):
        api.patch(MOVE_URL, {'taskId': body['task']['id'], 'columnId': column['id']})

    channel, event = channel_layer.sent[-1]
    assert channel == 'chan-bob'
    assert event['message']['message'] == 'Task "Live" moved to column "done"'
    assert event['message']['taskId'] == body['task']['id']
    assert event['message']['columnId'] == column['id']
    stored = Notification.objects.filter(user=bob).latest('id')
    assert (stored.task_id, stored.column_id) == (body['task']['id'], column['id'])


def test_move_task_errors(api):
    body = _create(api)

    missing = api.patch(MOVE_URL, {'taskId': body['task']['id']})
    unknown_task = api.patch(MOVE_URL, {'taskId': 999999, 'columnId': body['columnId']})
    unknown_column = api.patch(MOVE_URL, {'taskId': body['task']['id'], 'columnId': 999999})

    assert missing.status_code == 400
    assert missing.json() == {'error': 'taskId and columnId are required'}
    assert unknown_task.status_code == 404
    assert unknown_task.json() == {'error': 'Task not found'}
    assert unknown_column.status_code == 404
    assert unknown_column.json() == {'error': 'Column not found'}


def test_delete_task_cascades_and_notifies(api, bob):
    keep = _create(api, title='Cascade')
    body = _create(api, title='Cascade', assignedUserIds=[bob.id], subtasks=[{'title': 'a'}])
    task_id = body['task']['id']

    response = api.delete(f'/api/home/task/{task_id}')

    assert response.status_code == 200
    assert response.json() == {'message': 'Task deleted successfully'}
    assert not Task.objects.filter(id=task_id).exists()
    assert not Subtask.objects.filter(task_id=task_id).exists()
    assert not Comment.objects.filter(task_id=task_id).exists()
    assert not UserTask.objects.filter(task_id=task_id).exists()
    assert Task.objects.get(id=keep['task']['id']).order == 0

    bob_notifications = list(Notification.objects.filter(user=bob))
    assert [(n.message, n.task_id) for n in bob_notifications] == [('Task "Cascade" has been deleted', task_id)]


def test_delete_missing_task(api):
    response = api.delete('/api/home/task/999999')

    assert response.status_code == 404
    assert response.json() == {'error': 'Task not found'}


def test_task_detail(api, actor, bob):
    body = _create(api, title='Detail', assignedUserIds=[bob.id], subtasks=[{'title': 'a'}])

    response = api.get(f"/api/home/task/{body['task']['id']}")

    data = response.json()
    assert response.status_code == 200
    assert [subtask['title'] for subtask in data['subtasks']] == ['a']
    assert [comment['content'] for comment in data['comments']] == ['Task created']
    assert [user['id'] for user in data['assignedUsers']] == [bob.id]


def test_list_tasks_includes_column_and_board(api):
    body = _create(api, title='Listed')

    data = api.get('/api/home/tasks').json()

    assert [task['id'] for task in data] == [body['task']['id']]
    assert data[0]['column']['name'] == 'to do'
    assert data[0]['board']['id'] == body['boardId']


def test_search_tasks(api):
    match_title = _create(api, title='Fix Login')
    match_description = _create(api, title='Other', description='the LOGIN page')
    _create(api, title='Unrelated')

    response = api.get('/api/home/tasks/search', query='login')

    assert response.status_code == 200
    assert {task['id'] for task in response.json()} == {match_title['task']['id'], match_description['task']['id']}


def test_search_requires_query(api):
    response = api.get('/api/home/tasks/search')

    assert response.status_code == 400
    assert response.json() == {'error': 'Query parameter is required'}


def test_task_stats_counts_per_column(api):
    alpha = _create(api, title='Alpha')
    _create(api, title='Alpha')
    beta = _create(api, title='Beta')

    data = api.get('/api/home/stats').json()

    assert data == [
        {'columnId': alpha['columnId'], 'columnName': 'to do', 'boardId': alpha['boardId'], 'count': 2},
        {'columnId': beta['columnId'], 'columnName': 'to do', 'boardId': beta['boardId'], 'count': 1},
    ]


def test_endpoints_require_authentication(anonymous_api):
    response = anonymous_api.post(TASK_URL, {'title': 'Nope'})

    assert response.status_code == 401
    assert response.json() == {'error': 'Authentication required'}
    assert Task.objects.count() == 0
