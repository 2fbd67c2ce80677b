"""
Store de anamnese: lista completa, lista filtrada do histórico e ficha atual.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any
from uuid import UUID

from intake.config import get_settings
from intake.core.clock import utcnow
from intake.core.exceptions import NotFoundException
from intake.schemas.anamnesis import (
    AnamnesisCreate,
    AnamnesisFilter,
    AnamnesisResponse,
    AnamnesisUpdate,
)
from intake.stores.backend import AnamnesisBackend
from intake.stores.base import StoreState

logger = logging.getLogger(__name__)


def default_history_filter() -> AnamnesisFilter:
    """Janela padrão do histórico: últimos N dias até agora."""
    now = utcnow()
    return AnamnesisFilter(
        start=now - timedelta(days=get_settings().HISTORY_DEFAULT_DAYS),
        end=now,
    )


class AnamnesisStore(StoreState):
    def __init__(self, backend: AnamnesisBackend) -> None:
        super().__init__()
        self.backend = backend
        self.anamneses: list[AnamnesisResponse] = []
        self.filtered: list[AnamnesisResponse] = []
        self.current: AnamnesisResponse | None = None

    async def list(self) -> list[AnamnesisResponse]:
        """Todas as fichas, mais recentes primeiro. Reinicia a lista filtrada."""
        async with self._operation("Falha ao carregar registros de anamnese"):
            self.anamneses = await self.backend.list()
            self.filtered = list(self.anamneses)
        return self.anamneses

    async def get_by_id(self, anamnesis_id: UUID) -> AnamnesisResponse | None:
        try:
            async with self._operation("Falha ao carregar registro de anamnese"):
                self.current = await self.backend.get_by_id(anamnesis_id)
        except NotFoundException:
            self.current = None
        return self.current

    async def get_for_patient(self, patient_id: UUID) -> list[AnamnesisResponse]:
        async with self._operation(
            "Falha ao carregar histórico de anamnese do paciente"
        ):
            return await self.backend.for_patient(patient_id)

    async def create(
        self,
        draft: AnamnesisCreate | dict[str, Any],
        created_by: str,
    ) -> AnamnesisResponse:
        """
        Grava a ficha com todos os sub-registros como uma unidade.
        A existência do paciente é responsabilidade do backend.
        """
        data = self._validate(AnamnesisCreate, draft)
        async with self._operation("Falha ao adicionar registro de anamnese"):
            record = await self.backend.create(data, created_by)
            self.anamneses = [record, *self.anamneses]
            self.filtered = [record, *self.filtered]
            self.current = record
        logger.info(f"Anamnese {record.id} adicionada ao store")
        return record

    async def update(
        self,
        anamnesis_id: UUID,
        partial: AnamnesisUpdate | dict[str, Any],
    ) -> AnamnesisResponse:
        """
        Mescla campos e grupos; medications, allergies e reports enviados
        substituem a coleção inteira.
        """
        data = self._validate(AnamnesisUpdate, partial)
        async with self._operation("Falha ao atualizar registro de anamnese"):
            record = await self.backend.update(anamnesis_id, data)
            self.anamneses = [record if a.id == anamnesis_id else a for a in self.anamneses]
            self.filtered = [record if a.id == anamnesis_id else a for a in self.filtered]
            self.current = record
        return record

    async def filter(
        self, criteria: AnamnesisFilter | dict[str, Any] | None = None
    ) -> list[AnamnesisResponse]:
        """Atualiza apenas `filtered`; a lista completa não é alterada."""
        if criteria is None:
            criteria = default_history_filter()
        criteria = self._validate(AnamnesisFilter, criteria)
        async with self._operation("Falha ao filtrar registros de anamnese"):
            self.filtered = await self.backend.filter(criteria)
        return self.filtered
