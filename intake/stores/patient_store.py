"""
Store de pacientes: cache local da lista, agenda do dia e resultados de busca.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from intake.core.clock import local_day_bounds
from intake.core.exceptions import NotFoundException
from intake.schemas.patient import PatientCreate, PatientResponse, PatientUpdate
from intake.stores.backend import PatientBackend
from intake.stores.base import StoreState

logger = logging.getLogger(__name__)


class PatientStore(StoreState):
    def __init__(self, backend: PatientBackend) -> None:
        super().__init__()
        self.backend = backend
        self.patients: list[PatientResponse] = []
        self.today_appointments: list[PatientResponse] = []
        self.search_results: list[PatientResponse] = []

    async def list(self) -> list[PatientResponse]:
        async with self._operation("Falha ao carregar lista de pacientes"):
            self.patients = await self.backend.list()
        return self.patients

    def find_loaded(self, patient_id: UUID) -> PatientResponse | None:
        """Consulta apenas a lista já carregada, sem ir ao backend."""
        for patient in self.patients:
            if patient.id == patient_id:
                return patient
        return None

    async def get_by_id(self, patient_id: UUID) -> PatientResponse | None:
        loaded = self.find_loaded(patient_id)
        if loaded is not None:
            return loaded
        try:
            async with self._operation("Falha ao carregar paciente"):
                return await self.backend.get_by_id(patient_id)
        except NotFoundException:
            return None

    async def create(self, fields: PatientCreate | dict[str, Any]) -> PatientResponse:
        data = self._validate(PatientCreate, fields)
        async with self._operation("Falha ao adicionar paciente"):
            patient = await self.backend.create(data)
            self.patients = [patient, *self.patients]
        logger.info(f"Paciente {patient.id} adicionado ao store")
        return patient

    async def update(
        self, patient_id: UUID, fields: PatientUpdate | dict[str, Any]
    ) -> PatientResponse:
        data = self._validate(PatientUpdate, fields)
        async with self._operation("Falha ao atualizar paciente"):
            patient = await self.backend.update(patient_id, data)
            self.patients = [patient if p.id == patient_id else p for p in self.patients]
        return patient

    async def search(self, query: str) -> list[PatientResponse]:
        async with self._operation("Falha ao buscar pacientes"):
            self.search_results = await self.backend.search(query)
        return self.search_results

    async def todays_appointments(self) -> list[PatientResponse]:
        """Pacientes cadastrados hoje (meia-noite a meia-noite, fuso local)."""
        start, end = local_day_bounds()
        async with self._operation("Falha ao carregar agenda do dia"):
            self.today_appointments = await self.backend.created_between(start, end)
        return self.today_appointments

