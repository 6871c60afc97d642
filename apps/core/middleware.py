# apps/core/middleware.py

import logging

from django.db import IntegrityError
from django.http import Http404, JsonResponse

from .exceptions import BoardError, ConflictError, InternalError

logger = logging.getLogger(__name__)


class BoardErrorMiddleware:
    """
    Middleware que converte exceções do domínio em respostas JSON

    Toda resposta de erro carrega um status coerente com o tipo e uma
    mensagem legível; detalhes internos vão para o log, nunca para o cliente.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        if isinstance(exception, BoardError):
            error = exception
        elif isinstance(exception, Http404):
            return JsonResponse({'error': str(exception) or 'Not found'}, status=404)
        elif isinstance(exception, IntegrityError):
            logger.warning(f"⚠️ Conflito de integridade em {request.path}: {exception}")
            error = ConflictError('Resource already exists')
        else:
            logger.exception(f"❌ Erro inesperado em {request.method} {request.path}")
            error = InternalError()

        if error.status_code >= 500:
            logger.error(f"❌ {request.method} {request.path} -> {error.status_code}: {error.message}")
        else:
            logger.warning(f"⚠️ {request.method} {request.path} -> {error.status_code}: {error.message}")

        return JsonResponse({'error': error.message}, status=error.status_code)
