"""
Estado comum dos stores: flag de carregamento, mensagem de erro e
serialização das operações de uma mesma instância.

Contrato de erro (igual para todas as operações):
- `is_loading` volta a False em qualquer desfecho;
- `error` recebe a mensagem exibível ao usuário;
- a exceção tipada é sempre relançada ao chamador.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import HTTPException
from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError

from intake.core.exceptions import PersistenceException, ValidationException

logger = logging.getLogger(__name__)


def validation_message(exc: ValidationError) -> str:
    """Resume os erros do pydantic em uma linha: 'campo: mensagem; ...'."""
    parts = []
    for error in exc.errors():
        field = ".".join(str(p) for p in error["loc"]) or "registro"
        parts.append(f"{field}: {error['msg']}")
    return "; ".join(parts)


class StoreState:
    def __init__(self) -> None:
        self.is_loading: bool = False
        self.error: str | None = None
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def _operation(self, failure_message: str) -> AsyncIterator[None]:
        async with self._lock:
            self.is_loading = True
            self.error = None
            try:
                yield
            except HTTPException as exc:
                # Não encontrado / validação: a mensagem do backend já é exibível
                self.error = str(exc.detail)
                logger.warning(f"{failure_message}: {exc.detail}")
                raise
            except (SQLAlchemyError, OSError) as exc:
                self.error = failure_message
                logger.error(f"{failure_message}: {exc}")
                raise PersistenceException(failure_message) from exc
            finally:
                self.is_loading = False

    def _validate(self, schema: type[BaseModel], fields):
        """Checagem de campos obrigatórios antes de qualquer chamada ao backend."""
        if isinstance(fields, schema):
            return fields
        try:
            return schema.model_validate(fields)
        except ValidationError as exc:
            self.error = validation_message(exc)
            raise ValidationException(self.error) from exc
