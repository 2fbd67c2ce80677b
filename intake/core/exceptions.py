"""
Exceções HTTP personalizadas da API.

Os stores e serviços levantam sempre uma destas exceções; o campo
`detail` é a mensagem exibida ao usuário.
"""

from fastapi import HTTPException, status


class NotFoundException(HTTPException):
    """Recurso não encontrado (404)."""

    def __init__(self, resource: str = "Registro", detail: str | None = None):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail or f"{resource} não encontrado",
        )


class ValidationException(HTTPException):
    """Erro de validação de negócio (422)."""

    def __init__(self, detail: str = "Erro de validação"):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
        )


class PersistenceException(HTTPException):
    """Falha do backend de persistência: conexão, restrição violada (503)."""

    def __init__(self, detail: str = "Falha ao acessar o banco de dados"):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail,
        )
