"""
Tests do store de anamnese: gravação com sub-registros, mescla parcial,
substituição de coleções e filtro do histórico.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from intake.core.exceptions import (
    NotFoundException,
    PersistenceException,
    ValidationException,
)
from intake.models.anamnesis import Anamnesis, ExamType
from intake.schemas.anamnesis import AnamnesisFilter, AnamnesisResponse, Signature
from intake.stores.anamnesis_store import AnamnesisStore
from intake.stores.backend import SqlAnamnesisBackend
from intake.stores.memory import InMemoryAnamnesisBackend, InMemoryPatientBackend


def anamnesis_fields(patient_id, **overrides) -> dict:
    fields = {
        "patient_id": str(patient_id),
        "exam_type": "tomography",
        "exam_subtype": "Crânio",
        "initial_screening": {"has_consent": True},
        "patient_condition": {"walking": True, "calm": True},
        "personal_history": {"hypertension": True, "other_conditions": "Enxaqueca"},
        "medication_usage": {"using": True, "description": "Uso contínuo"},
        "medications": [
            {"name": "Atenolol", "dosage": "50mg", "frequency": "1x ao dia"},
            {"name": "Losartana", "dosage": "25mg", "frequency": "2x ao dia"},
        ],
        "allergy_info": {"has": True, "contrast_allergy": True},
        "allergies": [{"type": "Contraste iodado", "reaction": "Urticária"}],
        "exam_room": {"pre_exam": {"blood_pressure": "120/80"}},
        "reports": [{"date_time": "2024-03-10T10:00", "description": "Paciente calmo"}],
        "patient_signature": {"method": "drawing", "image_data": "data:image/png;base64,AAA"},
        "professional_signature": {"method": "govbr", "external_token": "govbr-123"},
    }
    fields.update(overrides)
    return fields


async def test_create_persists_all_sub_records(stores, patient_fields):
    patients, anamneses = stores
    patient = await patients.create(patient_fields())

    record = await anamneses.create(anamnesis_fields(patient.id), created_by="enf-01")
    fetched = await anamneses.get_by_id(record.id)

    assert fetched.created_by == "enf-01"
    assert fetched.exam_type == ExamType.TOMOGRAPHY
    assert fetched.initial_screening.has_consent is True
    assert fetched.initial_screening.has_identification_tag is False
    assert fetched.patient_condition.walking is True
    assert fetched.exam_room.pre_exam.blood_pressure == "120/80"
    assert [m.name for m in fetched.medications] == ["Atenolol", "Losartana"]
    assert fetched.allergies[0].reaction == "Urticária"
    assert fetched.reports[0].description == "Paciente calmo"
    assert fetched.patient_signature.image_data.startswith("data:image/png")
    assert fetched.patient_signature.signed_at is not None
    assert fetched.professional_signature.external_token == "govbr-123"
    assert anamneses.anamneses[0].id == record.id
    assert anamneses.filtered[0].id == record.id


async def test_create_requires_existing_patient(stores):
    _, anamneses = stores
    with pytest.raises(NotFoundException):
        await anamneses.create(anamnesis_fields(uuid.uuid4()), created_by="enf-01")
    assert anamneses.error == "Paciente não encontrado"
    assert anamneses.is_loading is False
    assert anamneses.anamneses == []


async def test_create_without_exam_type_fails_validation(stores, patient_fields):
    patients, anamneses = stores
    patient = await patients.create(patient_fields())
    fields = anamnesis_fields(patient.id)
    del fields["exam_type"]

    with pytest.raises(ValidationException):
        await anamneses.create(fields, created_by="enf-01")
    assert "exam_type" in anamneses.error


async def test_update_merges_groups_and_replaces_collections(stores, patient_fields):
    patients, anamneses = stores
    patient = await patients.create(patient_fields())
    record = await anamneses.create(anamnesis_fields(patient.id), created_by="enf-01")

    updated = await anamneses.update(record.id, {
        "personal_history": {"diabetes": True},
        "medications": [{"name": "Metformina"}],
        "allergies": [],
    })

    assert updated.personal_history.diabetes is True
    assert updated.personal_history.hypertension is True
    assert updated.personal_history.other_conditions == "Enxaqueca"
    assert [m.name for m in updated.medications] == ["Metformina"]
    assert updated.allergies == []
    assert updated.reports[0].description == "Paciente calmo"
    assert updated.exam_subtype == "Crânio"
    assert updated.professional_signature.external_token == "govbr-123"

    fetched = await anamneses.get_by_id(record.id)
    assert [m.name for m in fetched.medications] == ["Metformina"]
    assert anamneses.anamneses[0].medications[0].name == "Metformina"


async def test_update_replaces_signature_method(stores, patient_fields):
    patients, anamneses = stores
    patient = await patients.create(patient_fields())
    record = await anamneses.create(anamnesis_fields(patient.id), created_by="enf-01")

    updated = await anamneses.update(record.id, {
        "patient_signature": {"method": "govbr", "external_token": "govbr-999"},
        "professional_signature": None,
    })

    assert updated.patient_signature.method == "govbr"
    assert updated.patient_signature.image_data is None
    assert updated.professional_signature is None


async def test_update_unknown_record(stores):
    _, anamneses = stores
    with pytest.raises(NotFoundException):
        await anamneses.update(uuid.uuid4(), {"exam_subtype": "Tórax"})
    assert anamneses.error == "Registro de anamnese não encontrado"
    assert anamneses.is_loading is False


async def test_get_for_patient_newest_first(stores, patient_fields):
    patients, anamneses = stores
    ana = await patients.create(patient_fields(name="Ana Silva"))
    carlos = await patients.create(patient_fields(name="Carlos Oliveira"))
    first = await anamneses.create(anamnesis_fields(ana.id), created_by="enf-01")
    await anamneses.create(anamnesis_fields(carlos.id), created_by="enf-01")
    second = await anamneses.create(
        anamnesis_fields(ana.id, exam_type="resonance"), created_by="enf-01"
    )

    records = await anamneses.get_for_patient(ana.id)
    assert [r.id for r in records] == [second.id, first.id]


async def test_filter_by_exam_type_and_patient_name(stores, patient_fields):
    patients, anamneses = stores
    ana = await patients.create(patient_fields(name="Ana Silva"))
    carlos = await patients.create(patient_fields(name="Carlos Oliveira"))
    await anamneses.create(anamnesis_fields(ana.id), created_by="enf-01")
    resonance = await anamneses.create(
        anamnesis_fields(ana.id, exam_type="resonance"), created_by="enf-01"
    )
    await anamneses.create(anamnesis_fields(carlos.id), created_by="enf-01")
    await anamneses.list()

    by_type = await anamneses.filter({"exam_type": "resonance"})
    assert [r.id for r in by_type] == [resonance.id]

    by_name = await anamneses.filter({"patient_name": "silva"})
    assert {r.patient_id for r in by_name} == {ana.id}
    assert len(by_name) == 2

    # A lista completa não muda com o filtro
    assert len(anamneses.anamneses) == 3


async def test_patient_name_filter_treats_wildcards_literally(stores, patient_fields):
    patients, anamneses = stores
    patient = await patients.create(patient_fields(name="Ana Silva"))
    await anamneses.create(anamnesis_fields(patient.id), created_by="enf-01")

    assert await anamneses.filter({"patient_name": "%"}) == []
    assert await anamneses.filter({"patient_name": "a_a"}) == []
    assert len(await anamneses.filter({"patient_name": "a s"})) == 1


async def test_other_exam_type_matches_exactly(stores, patient_fields):
    patients, anamneses = stores
    patient = await patients.create(patient_fields())
    await anamneses.create(anamnesis_fields(patient.id), created_by="enf-01")
    other = await anamneses.create(
        anamnesis_fields(patient.id, exam_type="other"), created_by="enf-01"
    )

    result = await anamneses.filter(AnamnesisFilter(exam_type=ExamType.OTHER))
    assert [r.id for r in result] == [other.id]


async def test_default_filter_covers_recent_records(stores, patient_fields):
    patients, anamneses = stores
    patient = await patients.create(patient_fields())
    record = await anamneses.create(anamnesis_fields(patient.id), created_by="enf-01")

    assert [r.id for r in await anamneses.filter()] == [record.id]


# ── Limites de data ──────────────────────────────────

BOUNDARY = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)


def _boundary_criteria() -> AnamnesisFilter:
    return AnamnesisFilter(start=BOUNDARY - timedelta(days=1), end=BOUNDARY)


async def test_date_bounds_inclusive_sql(db_session: AsyncSession, test_patient, session_factory):
    for created_at in (BOUNDARY, BOUNDARY + timedelta(milliseconds=1)):
        db_session.add(Anamnesis(
            patient_id=test_patient.id,
            exam_type=ExamType.TOMOGRAPHY,
            created_by="enf-01",
            created_at=created_at,
            updated_at=created_at,
        ))
    await db_session.commit()

    store = AnamnesisStore(SqlAnamnesisBackend(session_factory))
    result = await store.filter(_boundary_criteria())

    assert len(result) == 1
    assert result[0].created_at.replace(tzinfo=None) == BOUNDARY.replace(tzinfo=None)


async def test_date_bounds_inclusive_memory():
    patients = InMemoryPatientBackend(latency_ms=0)
    records = [
        AnamnesisResponse(
            id=uuid.uuid4(),
            patient_id=uuid.uuid4(),
            exam_type=ExamType.RESONANCE,
            created_by="enf-01",
            created_at=created_at,
            updated_at=created_at,
        )
        for created_at in (
            BOUNDARY - timedelta(days=1),
            BOUNDARY,
            BOUNDARY + timedelta(milliseconds=1),
        )
    ]
    store = AnamnesisStore(InMemoryAnamnesisBackend(patients, records, latency_ms=0))

    result = await store.filter(_boundary_criteria())

    assert [r.created_at for r in result] == [BOUNDARY, BOUNDARY - timedelta(days=1)]


# ── Assinatura ───────────────────────────────────────

def test_signature_payloads_are_exclusive():
    with pytest.raises(ValidationError):
        Signature(method="drawing", image_data="data:x", external_token="govbr-1")
    with pytest.raises(ValidationError):
        Signature(method="govbr", image_data="data:x")
    with pytest.raises(ValidationError):
        Signature(method="drawing")

    assert Signature(method="govbr", external_token="govbr-1").image_data is None


class _BrokenAnamnesisBackend:
    async def for_patient(self, patient_id):
        raise SQLAlchemyError("connection refused")

    async def update(self, anamnesis_id, data):
        raise OSError("network down")

    async def filter(self, criteria):
        raise SQLAlchemyError("connection refused")


async def test_backend_failure_resets_loading_and_sets_error():
    store = AnamnesisStore(_BrokenAnamnesisBackend())

    with pytest.raises(PersistenceException):
        await store.get_for_patient(uuid.uuid4())
    assert store.is_loading is False
    assert store.error == "Falha ao carregar histórico de anamnese do paciente"

    with pytest.raises(PersistenceException):
        await store.update(uuid.uuid4(), {"exam_subtype": "Tórax"})
    assert store.is_loading is False
    assert store.error == "Falha ao atualizar registro de anamnese"

    with pytest.raises(PersistenceException):
        await store.filter({"exam_type": "resonance"})
    assert store.is_loading is False
    assert store.error == "Falha ao filtrar registros de anamnese"
    assert store.filtered == []
