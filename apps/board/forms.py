# apps/board/forms.py

from django import forms

from apps.core.exceptions import ValidationError


class JsonPayloadForm(forms.Form):
    """
    Form alimentado por um corpo JSON

    ``field_aliases`` traduz as chaves camelCase da API para os
    nomes dos campos do form.
    """

    field_aliases = {}

    def __init__(self, payload=None, **kwargs):
        data = {}
        for key, value in (payload or {}).items():
            data[self.field_aliases.get(key, key)] = value
        super().__init__(data=data, **kwargs)

    def cleaned_or_raise(self):
        """
        Valida e retorna cleaned_data

        Raises:
            ValidationError: com a primeira mensagem de erro do form
        """
        if not self.is_valid():
            field, errors = next(iter(self.errors.items()))
            raise ValidationError(errors[0])
        return self.cleaned_data


class TaskCreateForm(JsonPayloadForm):
    """Campos escalares da criação de tarefa"""

    field_aliases = {
        'timeStart': 'time_start',
        'timeEnd': 'time_end',
    }

    title = forms.CharField(
        max_length=200,
        error_messages={'required': 'title is required'}
    )
    description = forms.CharField(required=False, strip=False)
    time_start = forms.DateTimeField(required=False)
    time_end = forms.DateTimeField(required=False)
    priority = forms.CharField(max_length=20, required=False)

    def clean(self):
        cleaned_data = super().clean()
        time_start = cleaned_data.get('time_start')
        time_end = cleaned_data.get('time_end')

        if time_start and time_end and time_end < time_start:
            raise forms.ValidationError('timeEnd must not be before timeStart')

        return cleaned_data


class TaskMoveForm(JsonPayloadForm):
    field_aliases = {
        'taskId': 'task_id',
        'columnId': 'column_id',
    }

    task_id = forms.IntegerField(error_messages={'required': 'taskId and columnId are required'})
    column_id = forms.IntegerField(error_messages={'required': 'taskId and columnId are required'})


class BoardCreateForm(JsonPayloadForm):
    field_aliases = {'workspaceId': 'workspace_id'}

    name = forms.CharField(max_length=200, error_messages={'required': 'Name & workspaceId required'})
    workspace_id = forms.IntegerField(error_messages={'required': 'Name & workspaceId required'})


class ColumnCreateForm(JsonPayloadForm):
    field_aliases = {'boardId': 'board_id'}

    name = forms.CharField(max_length=100, error_messages={'required': 'Name & boardId required'})
    board_id = forms.IntegerField(error_messages={'required': 'Name & boardId required'})


class SubtaskCreateForm(JsonPayloadForm):
    field_aliases = {
        'taskId': 'task_id',
        'isDone': 'is_done',
    }

    task_id = forms.IntegerField(error_messages={'required': 'taskId & title required'})
    title = forms.CharField(max_length=200, error_messages={'required': 'taskId & title required'})
    is_done = forms.NullBooleanField(required=False)


class SubtaskUpdateForm(JsonPayloadForm):
    """Atualização parcial: ``title`` e/ou ``isDone``"""

    field_aliases = {'isDone': 'is_done'}

    title = forms.CharField(max_length=200, required=False)
    is_done = forms.NullBooleanField(required=False)


class WorkspaceCreateForm(JsonPayloadForm):
    name = forms.CharField(max_length=200, error_messages={'required': 'Workspace name required'})
