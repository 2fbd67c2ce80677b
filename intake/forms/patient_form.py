"""
Controlador do formulário de cadastro de paciente.
"""

import logging
from typing import Any
from uuid import UUID

from fastapi import HTTPException
from pydantic import ValidationError

from intake.core.exceptions import ValidationException
from intake.schemas.patient import PatientCreate, PatientResponse, PatientUpdate
from intake.stores.base import validation_message
from intake.stores.patient_store import PatientStore

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = {
    "patient_id": "ID do paciente",
    "name": "Nome",
    "birth_date": "Data de nascimento",
    "gender": "Sexo",
}
OPTIONAL_FIELDS = ("phone", "email")


def empty_patient_draft() -> dict[str, Any]:
    return {field: "" for field in (*REQUIRED_FIELDS, *OPTIONAL_FIELDS)}


class PatientFormController:
    def __init__(self, store: PatientStore, patient_record_id: UUID | None = None) -> None:
        self.store = store
        self.patient_record_id = patient_record_id
        self.draft: dict[str, Any] = empty_patient_draft()
        self.error: str | None = None

    @property
    def is_editing(self) -> bool:
        return self.patient_record_id is not None

    def set(self, field: str, value: Any) -> None:
        if field not in self.draft:
            raise ValidationException(f"Campo desconhecido: {field}")
        self.draft[field] = value

    async def load(self) -> bool:
        if not self.is_editing:
            return True
        self.error = None
        try:
            patient = await self.store.get_by_id(self.patient_record_id)
        except HTTPException as exc:
            self.error = str(exc.detail)
            return False
        if patient is None:
            self.error = "Paciente não encontrado"
            return False
        self.draft = {
            "patient_id": patient.patient_id,
            "name": patient.name,
            "birth_date": patient.birth_date.isoformat(),
            "gender": patient.gender.value,
            "phone": patient.phone or "",
            "email": patient.email or "",
        }
        return True

    def missing_fields(self) -> list[str]:
        return [
            label
            for field, label in REQUIRED_FIELDS.items()
            if not str(self.draft.get(field) or "").strip()
        ]

    def _payload(self) -> dict[str, Any]:
        payload = dict(self.draft)
        for field in OPTIONAL_FIELDS:
            if not str(payload.get(field) or "").strip():
                payload[field] = None
        return payload

    async def submit(self) -> PatientResponse | None:
        """Cria ou atualiza (todos os campos). Em falha mantém o rascunho."""
        self.error = None
        missing = self.missing_fields()
        if missing:
            self.error = f"Campos obrigatórios: {', '.join(missing)}"
            return None

        schema = PatientUpdate if self.is_editing else PatientCreate
        try:
            data = schema.model_validate(self._payload())
        except ValidationError as exc:
            self.error = validation_message(exc)
            return None

        try:
            if self.is_editing:
                patient = await self.store.update(self.patient_record_id, data)
            else:
                patient = await self.store.create(data)
                self.patient_record_id = patient.id
        except HTTPException as exc:
            self.error = str(exc.detail)
            logger.warning(f"Erro ao salvar paciente: {exc.detail}")
            return None
        return patient
