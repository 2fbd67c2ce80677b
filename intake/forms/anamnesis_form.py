"""
Controlador do formulário de anamnese.

Mantém o rascunho local (formato de `AnamnesisDraft`), aplica as edições
campo a campo e envia ao store como criação ou atualização, conforme um
id de ficha tenha sido informado na abertura.
"""

import logging
from typing import Any
from uuid import UUID

from fastapi import HTTPException
from pydantic import ValidationError

from intake.models.anamnesis import ExamType, SignatureRole
from intake.schemas.anamnesis import (
    AnamnesisCreate,
    AnamnesisDraft,
    AnamnesisResponse,
    AnamnesisUpdate,
)
from intake.forms.draft import get_path, set_path
from intake.forms.signature import ExternalSignatureProvider, SignatureCapture
from intake.stores.anamnesis_store import AnamnesisStore
from intake.stores.base import validation_message

logger = logging.getLogger(__name__)

_SIGNATURE_FIELDS = {
    SignatureRole.PATIENT: "patient_signature",
    SignatureRole.PROFESSIONAL: "professional_signature",
}


def empty_draft() -> dict[str, Any]:
    return AnamnesisDraft().model_dump(mode="json", exclude=set(_SIGNATURE_FIELDS.values()))


def draft_from_record(record: AnamnesisResponse) -> dict[str, Any]:
    return AnamnesisDraft.model_validate(record.model_dump()).model_dump(
        mode="json", exclude=set(_SIGNATURE_FIELDS.values())
    )


class AnamnesisFormController:
    def __init__(
        self,
        store: AnamnesisStore,
        patient_id: UUID,
        anamnesis_id: UUID | None = None,
        created_by: str = "anonymous",
        signature_provider: ExternalSignatureProvider | None = None,
    ) -> None:
        self.store = store
        self.patient_id = patient_id
        self.anamnesis_id = anamnesis_id
        self.created_by = created_by
        self.draft: dict[str, Any] = empty_draft()
        self.signatures = {
            role: SignatureCapture(signature_provider) for role in SignatureRole
        }
        self.error: str | None = None
        # Em edição, o rascunho só vale depois de load()
        self.loaded = anamnesis_id is None

    @property
    def is_editing(self) -> bool:
        return self.anamnesis_id is not None

    @property
    def is_loading(self) -> bool:
        return self.store.is_loading

    # ── Carga ────────────────────────────────────────

    async def load(self) -> bool:
        """Em edição, substitui o rascunho inteiro pela ficha salva."""
        if not self.is_editing:
            return True
        self.error = None
        try:
            record = await self.store.get_by_id(self.anamnesis_id)
        except HTTPException as exc:
            self.error = str(exc.detail)
            return False
        if record is None:
            self.error = "Registro de anamnese não encontrado"
            return False

        self.patient_id = record.patient_id
        self.draft = draft_from_record(record)
        for role, field in _SIGNATURE_FIELDS.items():
            self.signatures[role].restore(getattr(record, field))
        self.loaded = True
        return True

    # ── Edição genérica ──────────────────────────────

    def get(self, path: str) -> Any:
        return get_path(self.draft, path)

    def set(self, path: str, value: Any) -> None:
        set_path(self.draft, path, value)

    # ── Acessores por seção ──────────────────────────

    def set_exam(self, exam_type: ExamType | str, subtype: str | None = None) -> None:
        self.draft["exam_type"] = ExamType(exam_type).value
        self.draft["exam_subtype"] = subtype

    def set_screening(self, field: str, value: bool) -> None:
        self.set(f"initial_screening.{field}", value)

    def set_condition(self, field: str, value: Any) -> None:
        self.set(f"patient_condition.{field}", value)

    def set_dental_prosthesis(self, value: bool) -> None:
        self.draft["has_dental_prosthesis"] = value

    def set_previous_exams(self, field: str, value: Any) -> None:
        self.set(f"previous_exams.{field}", value)

    def set_history(self, field: str, value: Any) -> None:
        self.set(f"personal_history.{field}", value)

    def set_medication_usage(self, field: str, value: Any) -> None:
        self.set(f"medication_usage.{field}", value)

    def set_allergy_info(self, field: str, value: Any) -> None:
        self.set(f"allergy_info.{field}", value)

    def set_preparation(self, field: str, value: Any) -> None:
        self.set(f"exam_preparation.{field}", value)

    def set_pre_exam_vitals(self, field: str, value: str) -> None:
        self.set(f"exam_room.pre_exam.{field}", value)

    def set_venous_puncture(self, field: str, value: Any) -> None:
        self.set(f"exam_room.venous_puncture.{field}", value)

    def set_post_exam(self, field: str, value: Any) -> None:
        self.set(f"post_exam.{field}", value)

    def set_post_exam_vitals(self, field: str, value: str) -> None:
        self.set(f"post_exam.vitals.{field}", value)

    # ── Coleções ─────────────────────────────────────

    def add_medication(self, name: str, dosage: str | None = None,
                       frequency: str | None = None) -> None:
        self.draft["medications"].append(
            {"name": name, "dosage": dosage, "frequency": frequency}
        )

    def remove_medication(self, index: int) -> None:
        del self.draft["medications"][index]

    def add_allergy(self, type: str, reaction: str | None = None) -> None:
        self.draft["allergies"].append({"type": type, "reaction": reaction})

    def remove_allergy(self, index: int) -> None:
        del self.draft["allergies"][index]

    def add_report(self) -> None:
        self.draft["reports"].append({"date_time": "", "description": ""})

    def set_report(self, index: int, field: str, value: str) -> None:
        self.set(f"reports.{index}.{field}", value)

    # ── Assinaturas ──────────────────────────────────

    def signature(self, role: SignatureRole | str) -> SignatureCapture:
        return self.signatures[SignatureRole(role)]

    def _signature_payload(self) -> dict[str, Any]:
        payload = {}
        for role, field in _SIGNATURE_FIELDS.items():
            signature = self.signatures[role].signature
            payload[field] = signature.model_dump(mode="json") if signature else None
        return payload

    # ── Envio ────────────────────────────────────────

    async def submit(self) -> AnamnesisResponse | None:
        """
        Valida e envia o rascunho. Em falha, o rascunho é preservado e a
        mensagem fica em `error`; retorna None.
        """
        self.error = None
        if self.is_editing and not self.loaded:
            self.error = "Ficha ainda não carregada para edição"
            return None
        if not self.draft.get("exam_type"):
            self.error = "Selecione o tipo de exame"
            return None
        payload = {
            **self.draft,
            **self._signature_payload(),
            "patient_id": str(self.patient_id),
        }
        schema = AnamnesisUpdate if self.is_editing else AnamnesisCreate
        try:
            data = schema.model_validate(payload)
        except ValidationError as exc:
            self.error = validation_message(exc)
            return None

        try:
            if self.is_editing:
                record = await self.store.update(self.anamnesis_id, data)
            else:
                record = await self.store.create(data, self.created_by)
                self.anamnesis_id = record.id
        except HTTPException as exc:
            self.error = str(exc.detail)
            logger.warning(f"Erro ao salvar anamnese: {exc.detail}")
            return None
        return record
