# apps/core/permissions.py

from functools import wraps

from django.http import JsonResponse


class BoardPermissions:
    """
    Regras de acesso do Board

    A identidade vem da autenticação do Django; o núcleo só enxerga
    o id do usuário (ActorId).
    """

    @staticmethod
    def is_authenticated(user):
        """Verifica se há um usuário autenticado"""
        return bool(user and user.is_authenticated)


# Decoradores para views

def api_login_required(view_func):
    """
    Decorador para endpoints JSON
    Retorna 401 ao invés de redirecionar para o login
    """

    @wraps(view_func)
    def wrapped_view(request, *args, **kwargs):
        if not BoardPermissions.is_authenticated(request.user):
            return JsonResponse({'error': 'Authentication required'}, status=401)
        return view_func(request, *args, **kwargs)

    return wrapped_view
