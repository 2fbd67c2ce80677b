"""
Visão do histórico de anamneses: junta a lista filtrada do store com os
pacientes já carregados.
"""

from intake.config import get_settings
from intake.schemas.anamnesis import AnamnesisFilter, HistoryRow
from intake.stores.anamnesis_store import AnamnesisStore, default_history_filter
from intake.stores.patient_store import PatientStore


class HistoryView:
    def __init__(
        self,
        anamnesis_store: AnamnesisStore,
        patient_store: PatientStore,
        placeholder: str | None = None,
    ) -> None:
        self.anamnesis_store = anamnesis_store
        self.patient_store = patient_store
        self.placeholder = placeholder or get_settings().PATIENT_PLACEHOLDER_NAME
        self.criteria: AnamnesisFilter | None = None

    @property
    def is_loading(self) -> bool:
        return self.anamnesis_store.is_loading or self.patient_store.is_loading

    @property
    def error(self) -> str | None:
        return self.anamnesis_store.error or self.patient_store.error

    def patient_name(self, patient_id) -> str:
        patient = self.patient_store.find_loaded(patient_id)
        return patient.name if patient else self.placeholder

    def rows(self) -> list[HistoryRow]:
        return [
            HistoryRow(
                id=record.id,
                patient_id=record.patient_id,
                patient_name=self.patient_name(record.patient_id),
                exam_type=record.exam_type,
                exam_subtype=record.exam_subtype,
                created_by=record.created_by,
                created_at=record.created_at,
            )
            for record in self.anamnesis_store.filtered
        ]

    async def refresh(self, criteria: AnamnesisFilter | None = None) -> list[HistoryRow]:
        """Recarrega pacientes e aplica o filtro (padrão: últimos N dias)."""
        if criteria is not None:
            self.criteria = criteria
        await self.patient_store.list()
        await self.anamnesis_store.filter(self.criteria or default_history_filter())
        return self.rows()
