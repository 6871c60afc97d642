# tests/test_errors.py

import json

import pytest
from django.db import IntegrityError
from django.http import Http404
from django.test import RequestFactory

from apps.core.exceptions import ConflictError, InternalError, NotFound, ValidationError
from apps.core.middleware import BoardErrorMiddleware


@pytest.fixture
def middleware():
    return BoardErrorMiddleware(lambda request: None)


@pytest.fixture
def request_obj():
    return RequestFactory().post('/api/home/task')


@pytest.mark.parametrize('exception, status, message', [
    (ValidationError('title is required'), 400, 'title is required'),
    (NotFound('Task not found'), 404, 'Task not found'),
    (ConflictError('Board already exists in this workspace'), 409, 'Board already exists in this workspace'),
    (InternalError('Error creating task'), 500, 'Error creating task'),
    (IntegrityError('duplicate key value'), 409, 'Resource already exists'),
    (Http404('Nope'), 404, 'Nope'),
    (RuntimeError('secret stack detail'), 500, 'Internal server error'),
])
def test_exceptions_become_json_errors(middleware, request_obj, exception, status, message):
    response = middleware.process_exception(request_obj, exception)

    assert response.status_code == status
    assert json.loads(response.content) == {'error': message}


def test_default_messages():
    assert NotFound().message == NotFound.default_message
    assert InternalError().status_code == 500
