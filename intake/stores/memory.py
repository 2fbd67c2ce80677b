"""
Backend em memória com latência simulada e dados de demonstração.
Mesmo contrato do backend SQL; útil para desenvolvimento e testes.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import date, datetime
from uuid import UUID

from intake.config import get_settings
from intake.core.clock import as_utc, utcnow
from intake.core.exceptions import NotFoundException
from intake.models.anamnesis import ExamType, SignatureMethod
from intake.models.patient import Gender
from intake.schemas.anamnesis import (
    AnamnesisCreate,
    AnamnesisFilter,
    AnamnesisResponse,
    AnamnesisUpdate,
)
from intake.schemas.patient import PatientCreate, PatientResponse, PatientUpdate
from intake.services.anamnesis_service import SIGNATURE_FIELDS, deep_merge

logger = logging.getLogger(__name__)


class _LatencyMixin:
    def __init__(self, latency_ms: int | None = None):
        if latency_ms is None:
            latency_ms = get_settings().MOCK_LATENCY_MS
        self.latency = max(latency_ms, 0) / 1000

    async def _roundtrip(self) -> None:
        if self.latency:
            await asyncio.sleep(self.latency)


class InMemoryPatientBackend(_LatencyMixin):
    def __init__(
        self,
        patients: list[PatientResponse] | None = None,
        latency_ms: int | None = None,
    ):
        super().__init__(latency_ms)
        self.records: dict[UUID, PatientResponse] = {p.id: p for p in patients or []}

    def _get(self, patient_id: UUID) -> PatientResponse:
        patient = self.records.get(patient_id)
        if patient is None:
            raise NotFoundException("Paciente")
        return patient

    async def list(self) -> list[PatientResponse]:
        await self._roundtrip()
        return sorted(self.records.values(), key=lambda p: p.created_at, reverse=True)

    async def get_by_id(self, patient_id: UUID) -> PatientResponse:
        await self._roundtrip()
        return self._get(patient_id)

    async def create(self, data: PatientCreate) -> PatientResponse:
        await self._roundtrip()
        now = utcnow()
        patient = PatientResponse(
            id=uuid.uuid4(), created_at=now, updated_at=now, **data.model_dump()
        )
        self.records[patient.id] = patient
        return patient

    async def update(self, patient_id: UUID, data: PatientUpdate) -> PatientResponse:
        await self._roundtrip()
        current = self._get(patient_id)
        changes = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None or field in ("phone", "email")
        }
        updated = current.model_copy(update={**changes, "updated_at": utcnow()})
        self.records[patient_id] = updated
        return updated

    async def search(self, query: str) -> list[PatientResponse]:
        await self._roundtrip()
        term = query.strip().lower()
        matches = [
            p
            for p in self.records.values()
            if term in p.name.lower()
            or term in p.patient_id.lower()
            or (p.email and term in p.email.lower())
        ]
        return sorted(matches, key=lambda p: p.name)

    async def created_between(
        self, start: datetime, end: datetime
    ) -> list[PatientResponse]:
        await self._roundtrip()
        start, end = as_utc(start), as_utc(end)
        matches = [
            p for p in self.records.values() if start <= as_utc(p.created_at) < end
        ]
        return sorted(matches, key=lambda p: p.created_at, reverse=True)


class InMemoryAnamnesisBackend(_LatencyMixin):
    """
    O filtro por nome consulta o backend de pacientes; a existência do
    paciente é verificada na criação, como faria a chave estrangeira.
    """

    def __init__(
        self,
        patients: InMemoryPatientBackend,
        anamneses: list[AnamnesisResponse] | None = None,
        latency_ms: int | None = None,
    ):
        super().__init__(latency_ms)
        self.patients = patients
        self.records: dict[UUID, AnamnesisResponse] = {a.id: a for a in anamneses or []}

    def _get(self, anamnesis_id: UUID) -> AnamnesisResponse:
        record = self.records.get(anamnesis_id)
        if record is None:
            raise NotFoundException("Registro de anamnese")
        return record

    @staticmethod
    def _newest_first(records) -> list[AnamnesisResponse]:
        return sorted(records, key=lambda a: as_utc(a.created_at), reverse=True)

    @staticmethod
    def _stamp_signatures(data: dict) -> None:
        for field in SIGNATURE_FIELDS:
            signature = data.get(field)
            if signature is not None and signature.get("signed_at") is None:
                signature["signed_at"] = utcnow()

    async def list(self) -> list[AnamnesisResponse]:
        await self._roundtrip()
        return self._newest_first(self.records.values())

    async def get_by_id(self, anamnesis_id: UUID) -> AnamnesisResponse:
        await self._roundtrip()
        return self._get(anamnesis_id)

    async def for_patient(self, patient_id: UUID) -> list[AnamnesisResponse]:
        await self._roundtrip()
        return self._newest_first(
            a for a in self.records.values() if a.patient_id == patient_id
        )

    async def create(self, data: AnamnesisCreate, created_by: str) -> AnamnesisResponse:
        await self._roundtrip()
        if data.patient_id not in self.patients.records:
            raise NotFoundException("Paciente")
        now = utcnow()
        payload = data.model_dump()
        self._stamp_signatures(payload)
        record = AnamnesisResponse(
            id=uuid.uuid4(),
            created_by=created_by,
            created_at=now,
            updated_at=now,
            **payload,
        )
        self.records[record.id] = record
        return record

    async def update(
        self, anamnesis_id: UUID, data: AnamnesisUpdate
    ) -> AnamnesisResponse:
        await self._roundtrip()
        current = self._get(anamnesis_id).model_dump()
        partial = data.model_dump(exclude_unset=True)
        # Assinaturas e coleções substituem o valor anterior por inteiro
        signatures = {f: partial.pop(f) for f in SIGNATURE_FIELDS if f in partial}
        collections = {
            f: partial.pop(f)
            for f in ("medications", "allergies", "reports")
            if partial.get(f) is not None
        }
        partial = {
            k: v for k, v in partial.items() if v is not None or k == "exam_subtype"
        }
        merged = deep_merge(current, partial)
        merged.update(signatures)
        merged.update(collections)
        self._stamp_signatures(merged)
        merged["updated_at"] = utcnow()

        record = AnamnesisResponse.model_validate(merged)
        self.records[anamnesis_id] = record
        return record

    async def filter(self, criteria: AnamnesisFilter) -> list[AnamnesisResponse]:
        await self._roundtrip()
        start = as_utc(criteria.start) if criteria.start else None
        end = as_utc(criteria.end) if criteria.end else None
        term = criteria.patient_name.strip().lower() if criteria.patient_name else None

        def matches(record: AnamnesisResponse) -> bool:
            created = as_utc(record.created_at)
            if start and created < start:
                return False
            if end and created > end:
                return False
            if criteria.exam_type and record.exam_type != criteria.exam_type:
                return False
            if term:
                patient = self.patients.records.get(record.patient_id)
                if patient is None or term not in patient.name.lower():
                    return False
            return True

        return self._newest_first(r for r in self.records.values() if matches(r))


# ── Dados de demonstração ────────────────────────────

def _demo_patient(patient_id: str, name: str, birth: date, gender: Gender,
                  phone: str, email: str, created: str) -> PatientResponse:
    created_at = datetime.fromisoformat(created)
    return PatientResponse(
        id=uuid.uuid4(),
        patient_id=patient_id,
        name=name,
        birth_date=birth,
        gender=gender,
        phone=phone,
        email=email,
        created_at=created_at,
        updated_at=created_at,
    )


def build_demo_backends(
    latency_ms: int | None = None,
) -> tuple[InMemoryPatientBackend, InMemoryAnamnesisBackend]:
    """Backends em memória populados com três pacientes e duas fichas."""
    ana = _demo_patient(
        "PAT-001", "Ana Silva", date(1985, 4, 12), Gender.FEMALE,
        "(11) 98765-4321", "ana.silva@example.com", "2023-01-15T10:30:00+00:00",
    )
    carlos = _demo_patient(
        "PAT-002", "Carlos Oliveira", date(1972, 8, 22), Gender.MALE,
        "(11) 91234-5678", "carlos.oliveira@example.com", "2023-01-16T14:45:00+00:00",
    )
    mariana = _demo_patient(
        "PAT-003", "Mariana Costa", date(1990, 11, 30), Gender.FEMALE,
        "(11) 99876-5432", "mariana.costa@example.com", "2023-01-17T09:15:00+00:00",
    )
    patients = InMemoryPatientBackend([ana, carlos, mariana], latency_ms=latency_ms)

    anamneses = [
        AnamnesisResponse.model_validate({
            "id": uuid.uuid4(),
            "patient_id": ana.id,
            "exam_type": ExamType.TOMOGRAPHY,
            "exam_subtype": "Crânio",
            "initial_screening": {"has_consent": True, "has_identification_tag": True},
            "personal_history": {"hypertension": True},
            "medication_usage": {"using": True, "description": "Atenolol 50mg"},
            "medications": [
                {"name": "Atenolol", "dosage": "50mg", "frequency": "1x ao dia"},
            ],
            "allergy_info": {"has": True, "description": "Dipirona"},
            "allergies": [{"type": "Medicamento", "reaction": "Dipirona - Urticária"}],
            "reports": [{
                "date_time": "2023-05-10T11:30",
                "description": "Paciente relata dores de cabeça frequentes nos últimos 3 meses.",
            }],
            "patient_signature": {
                "method": SignatureMethod.DRAWING,
                "image_data": "data:image/png;base64,mockSignatureData",
                "signed_at": "2023-05-10T11:30:00+00:00",
            },
            "created_by": "1",
            "created_at": "2023-05-10T11:30:00+00:00",
            "updated_at": "2023-05-10T11:30:00+00:00",
        }),
        AnamnesisResponse.model_validate({
            "id": uuid.uuid4(),
            "patient_id": carlos.id,
            "exam_type": ExamType.RESONANCE,
            "exam_subtype": "Coluna Lombar",
            "initial_screening": {"has_consent": True},
            "patient_condition": {"walking": True, "phobic": True},
            "medication_usage": {"using": True},
            "medications": [
                {"name": "Omeprazol", "dosage": "20mg", "frequency": "1x ao dia"},
                {"name": "Ibuprofeno", "dosage": "600mg", "frequency": "Quando necessário"},
            ],
            "reports": [{
                "date_time": "2023-05-12T14:45",
                "description": "Paciente relata dor irradiada para perna direita.",
            }],
            "professional_signature": {
                "method": SignatureMethod.GOVBR,
                "external_token": "gov.br-signature-token",
                "signed_at": "2023-05-12T14:45:00+00:00",
            },
            "created_by": "1",
            "created_at": "2023-05-12T14:45:00+00:00",
            "updated_at": "2023-05-12T14:45:00+00:00",
        }),
    ]
    logger.info("Backends em memória inicializados com dados de demonstração")
    return patients, InMemoryAnamnesisBackend(patients, anamneses, latency_ms=latency_ms)
