"""
Contrato único de persistência dos stores e implementação relacional.

Os stores falam apenas com `PatientBackend` / `AnamnesisBackend`; o
backend SQL abre uma sessão por operação e faz um único commit, de modo
que a ficha e suas linhas filhas são gravadas (ou descartadas) juntas.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Protocol
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from intake.schemas.anamnesis import (
    AnamnesisCreate,
    AnamnesisFilter,
    AnamnesisResponse,
    AnamnesisUpdate,
)
from intake.schemas.patient import PatientCreate, PatientResponse, PatientUpdate
from intake.services import anamnesis_service, patient_service


class PatientBackend(Protocol):
    async def list(self) -> list[PatientResponse]: ...

    async def get_by_id(self, patient_id: UUID) -> PatientResponse: ...

    async def create(self, data: PatientCreate) -> PatientResponse: ...

    async def update(self, patient_id: UUID, data: PatientUpdate) -> PatientResponse: ...

    async def search(self, query: str) -> list[PatientResponse]: ...

    async def created_between(
        self, start: datetime, end: datetime
    ) -> list[PatientResponse]: ...


class AnamnesisBackend(Protocol):
    async def list(self) -> list[AnamnesisResponse]: ...

    async def get_by_id(self, anamnesis_id: UUID) -> AnamnesisResponse: ...

    async def for_patient(self, patient_id: UUID) -> list[AnamnesisResponse]: ...

    async def create(
        self, data: AnamnesisCreate, created_by: str
    ) -> AnamnesisResponse: ...

    async def update(
        self, anamnesis_id: UUID, data: AnamnesisUpdate
    ) -> AnamnesisResponse: ...

    async def filter(self, criteria: AnamnesisFilter) -> list[AnamnesisResponse]: ...


# ── Backend relacional ───────────────────────────────

class _SqlBackend:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None):
        if session_factory is None:
            from intake.database import async_session_factory

            session_factory = async_session_factory
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        """Sessão + transação: commit ao sair, rollback se houver exceção."""
        async with self._session_factory() as session:
            async with session.begin():
                yield session


class SqlPatientBackend(_SqlBackend):
    async def list(self) -> list[PatientResponse]:
        async with self._transaction() as db:
            return await patient_service.list_patients(db)

    async def get_by_id(self, patient_id: UUID) -> PatientResponse:
        async with self._transaction() as db:
            return await patient_service.get_patient(db, patient_id)

    async def create(self, data: PatientCreate) -> PatientResponse:
        async with self._transaction() as db:
            return await patient_service.create_patient(db, data)

    async def update(self, patient_id: UUID, data: PatientUpdate) -> PatientResponse:
        async with self._transaction() as db:
            return await patient_service.update_patient(db, patient_id, data)

    async def search(self, query: str) -> list[PatientResponse]:
        async with self._transaction() as db:
            return await patient_service.search_patients(db, query)

    async def created_between(
        self, start: datetime, end: datetime
    ) -> list[PatientResponse]:
        async with self._transaction() as db:
            return await patient_service.list_created_between(db, start, end)


class SqlAnamnesisBackend(_SqlBackend):
    async def list(self) -> list[AnamnesisResponse]:
        async with self._transaction() as db:
            return await anamnesis_service.list_anamneses(db)

    async def get_by_id(self, anamnesis_id: UUID) -> AnamnesisResponse:
        async with self._transaction() as db:
            return await anamnesis_service.get_anamnesis(db, anamnesis_id)

    async def for_patient(self, patient_id: UUID) -> list[AnamnesisResponse]:
        async with self._transaction() as db:
            return await anamnesis_service.list_patient_anamneses(db, patient_id)

    async def create(self, data: AnamnesisCreate, created_by: str) -> AnamnesisResponse:
        async with self._transaction() as db:
            return await anamnesis_service.create_anamnesis(db, data, created_by)

    async def update(
        self, anamnesis_id: UUID, data: AnamnesisUpdate
    ) -> AnamnesisResponse:
        async with self._transaction() as db:
            return await anamnesis_service.update_anamnesis(db, anamnesis_id, data)

    async def filter(self, criteria: AnamnesisFilter) -> list[AnamnesisResponse]:
        async with self._transaction() as db:
            return await anamnesis_service.filter_anamneses(db, criteria)
