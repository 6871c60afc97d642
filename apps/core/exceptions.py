# apps/core/exceptions.py

"""
Taxonomia de erros do domínio

Cada erro carrega o status HTTP correspondente; a tradução para
JSON fica no BoardErrorMiddleware.
"""


class BoardError(Exception):
    """Erro base do domínio"""

    status_code = 500
    default_message = 'Internal server error'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(BoardError):
    """Entrada obrigatória ausente ou malformada"""

    status_code = 400
    default_message = 'Invalid request'


class NotFound(BoardError):
    """Entidade referenciada não existe"""

    status_code = 404
    default_message = 'Not found'


class ConflictError(BoardError):
    """Violação de unicidade"""

    status_code = 409
    default_message = 'Conflict'


class InternalError(BoardError):
    """Falha inesperada de persistência ou transporte"""

    status_code = 500
