"""
Serviço de anamnese: criação, atualização, consulta e filtro do histórico.

Cada escrita grava a linha principal e todas as linhas filhas (medicações,
alergias, relatório, assinaturas) na mesma sessão; o commit único é feito
pelo chamador (dependency `get_db` ou backend do store).
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from intake.core.clock import as_utc, utcnow
from intake.core.exceptions import NotFoundException, ValidationException
from intake.models.anamnesis import (
    Anamnesis,
    AnamnesisAllergy,
    AnamnesisMedication,
    AnamnesisReport,
    AnamnesisSignature,
    SignatureMethod,
    SignatureRole,
)
from intake.models.patient import Patient
from intake.schemas.anamnesis import (
    AnamnesisCreate,
    AnamnesisFilter,
    AnamnesisResponse,
    AnamnesisUpdate,
    HistoryRow,
)

logger = logging.getLogger(__name__)

# Grupos um-para-um guardados em colunas JSON
JSON_GROUPS = (
    "patient_condition",
    "previous_exams",
    "personal_history",
    "medication_usage",
    "allergy_info",
    "exam_preparation",
    "exam_room",
    "post_exam",
)

SIGNATURE_FIELDS = {
    "patient_signature": SignatureRole.PATIENT,
    "professional_signature": SignatureRole.PROFESSIONAL,
}


def deep_merge(base: dict, partial: dict) -> dict:
    """Mescla `partial` sobre `base` recursivamente, sem alterar os originais."""
    merged = dict(base)
    for key, value in partial.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


# ── Conversão ORM → schema ───────────────────────────

def _signature_to_dict(signature: AnamnesisSignature | None) -> dict | None:
    if signature is None:
        return None
    return {
        "method": signature.method,
        "image_data": signature.image_data,
        "external_token": signature.external_token,
        "signed_at": signature.signed_at,
    }


def _anamnesis_to_response(record: Anamnesis) -> AnamnesisResponse:
    data: dict[str, Any] = {
        "id": record.id,
        "patient_id": record.patient_id,
        "exam_type": record.exam_type,
        "exam_subtype": record.exam_subtype,
        "initial_screening": {
            "has_consent": record.has_consent,
            "has_identification_tag": record.has_identification_tag,
        },
        "has_dental_prosthesis": record.has_dental_prosthesis,
        "medications": [
            {"name": m.name, "dosage": m.dosage, "frequency": m.frequency}
            for m in record.medications
        ],
        "allergies": [
            {"type": a.type, "reaction": a.reaction} for a in record.allergies
        ],
        "reports": [
            {"date_time": r.date_time or "", "description": r.description}
            for r in record.reports
        ],
        "patient_signature": _signature_to_dict(
            record.signature_for(SignatureRole.PATIENT)
        ),
        "professional_signature": _signature_to_dict(
            record.signature_for(SignatureRole.PROFESSIONAL)
        ),
        "created_by": record.created_by,
        "created_at": record.created_at,
        "updated_at": record.updated_at,
    }
    for group in JSON_GROUPS:
        data[group] = getattr(record, group) or {}
    return AnamnesisResponse.model_validate(data)


# ── Escrita das linhas filhas ────────────────────────

def _replace_collections(record: Anamnesis, data: dict) -> None:
    """Coleções enviadas substituem as existentes (delete-orphan)."""
    if data.get("medications") is not None:
        record.medications = [
            AnamnesisMedication(position=i, **item)
            for i, item in enumerate(data["medications"])
        ]
    if data.get("allergies") is not None:
        record.allergies = [
            AnamnesisAllergy(position=i, **item)
            for i, item in enumerate(data["allergies"])
        ]
    if data.get("reports") is not None:
        record.reports = [
            AnamnesisReport(position=i, **item)
            for i, item in enumerate(data["reports"])
        ]


def _apply_signature(record: Anamnesis, role: SignatureRole, payload: dict | None) -> None:
    """
    Grava a assinatura de um papel. A linha existente é reaproveitada
    (restrição única anamnesis_id + role); `None` remove a assinatura.
    """
    current = record.signature_for(role)
    if payload is None:
        if current is not None:
            record.signatures.remove(current)
        return

    method = SignatureMethod(payload["method"])
    image_data = payload.get("image_data") if method == SignatureMethod.DRAWING else None
    external_token = payload.get("external_token") if method == SignatureMethod.GOVBR else None
    if not (image_data or external_token):
        raise ValidationException("Assinatura sem conteúdo")

    if current is None:
        current = AnamnesisSignature(role=role)
        record.signatures.append(current)
    current.method = method
    current.image_data = image_data
    current.external_token = external_token
    current.signed_at = payload.get("signed_at") or utcnow()


def _apply_signatures(record: Anamnesis, data: dict) -> None:
    for field, role in SIGNATURE_FIELDS.items():
        if field in data:
            _apply_signature(record, role, data[field])


async def _get_or_404(db: AsyncSession, anamnesis_id: UUID) -> Anamnesis:
    result = await db.execute(select(Anamnesis).where(Anamnesis.id == anamnesis_id))
    record = result.scalar_one_or_none()
    if not record:
        raise NotFoundException("Registro de anamnese")
    return record


# ── Criar ficha ──────────────────────────────────────

async def create_anamnesis(
    db: AsyncSession,
    data: AnamnesisCreate,
    created_by: str,
) -> AnamnesisResponse:
    """
    Cria a ficha com todos os sub-registros.
    O paciente referenciado precisa existir (integridade referencial).
    """
    patient = await db.get(Patient, data.patient_id)
    if patient is None:
        raise NotFoundException("Paciente")

    payload = data.model_dump(mode="json")
    record = Anamnesis(
        patient_id=data.patient_id,
        exam_type=data.exam_type,
        exam_subtype=data.exam_subtype,
        has_consent=data.initial_screening.has_consent,
        has_identification_tag=data.initial_screening.has_identification_tag,
        has_dental_prosthesis=data.has_dental_prosthesis,
        created_by=created_by,
        medications=[],
        allergies=[],
        reports=[],
        signatures=[],
        **{group: payload[group] for group in JSON_GROUPS},
    )
    _replace_collections(record, payload)
    _apply_signatures(record, data.model_dump())
    db.add(record)
    await db.flush()

    logger.info(
        f"Anamnese criada: {record.id} paciente={record.patient_id} "
        f"exame={record.exam_type.value}"
    )
    return _anamnesis_to_response(record)


# ── Atualizar ficha ──────────────────────────────────

async def update_anamnesis(
    db: AsyncSession,
    anamnesis_id: UUID,
    data: AnamnesisUpdate,
) -> AnamnesisResponse:
    """
    Atualização parcial: campos simples e grupos um-para-um são mesclados;
    medications, allergies e reports são substituídos por completo.
    """
    record = await _get_or_404(db, anamnesis_id)
    update_json = data.model_dump(mode="json", exclude_unset=True)

    for field in ("exam_type", "exam_subtype", "has_dental_prosthesis"):
        if field in update_json and (update_json[field] is not None or field == "exam_subtype"):
            setattr(record, field, update_json[field])

    screening = update_json.get("initial_screening") or {}
    for field in ("has_consent", "has_identification_tag"):
        if field in screening:
            setattr(record, field, screening[field])

    for group in JSON_GROUPS:
        if update_json.get(group) is not None:
            # Atribuir um novo dict para o SQLAlchemy detectar a mudança
            setattr(record, group, deep_merge(getattr(record, group) or {}, update_json[group]))

    _replace_collections(record, update_json)
    _apply_signatures(record, data.model_dump(exclude_unset=True))
    record.updated_at = utcnow()

    await db.flush()
    logger.info(f"Anamnese atualizada: {record.id} campos={sorted(update_json)}")
    return _anamnesis_to_response(record)


# ── Consultas ────────────────────────────────────────

async def get_anamnesis(db: AsyncSession, anamnesis_id: UUID) -> AnamnesisResponse:
    return _anamnesis_to_response(await _get_or_404(db, anamnesis_id))


async def list_anamneses(db: AsyncSession) -> list[AnamnesisResponse]:
    """Todas as fichas, mais recentes primeiro."""
    result = await db.execute(select(Anamnesis).order_by(Anamnesis.created_at.desc()))
    return [_anamnesis_to_response(r) for r in result.scalars().all()]


async def list_patient_anamneses(
    db: AsyncSession, patient_id: UUID
) -> list[AnamnesisResponse]:
    result = await db.execute(
        select(Anamnesis)
        .where(Anamnesis.patient_id == patient_id)
        .order_by(Anamnesis.created_at.desc())
    )
    return [_anamnesis_to_response(r) for r in result.scalars().all()]


def _filtered_query(criteria: AnamnesisFilter):
    query = select(Anamnesis)
    if criteria.start:
        query = query.where(Anamnesis.created_at >= as_utc(criteria.start))
    if criteria.end:
        query = query.where(Anamnesis.created_at <= as_utc(criteria.end))
    if criteria.exam_type:
        query = query.where(Anamnesis.exam_type == criteria.exam_type)
    if criteria.patient_name:
        term = criteria.patient_name.strip().lower()
        query = query.join(Patient, Patient.id == Anamnesis.patient_id).where(
            func.lower(Patient.name).contains(term, autoescape=True)
        )
    return query.order_by(Anamnesis.created_at.desc())


async def filter_anamneses(
    db: AsyncSession, criteria: AnamnesisFilter
) -> list[AnamnesisResponse]:
    """
    Filtra por intervalo de datas (limites inclusivos), tipo de exame exato
    e substring do nome do paciente.
    """
    result = await db.execute(_filtered_query(criteria))
    return [_anamnesis_to_response(r) for r in result.scalars().all()]


async def history_rows(
    db: AsyncSession,
    criteria: AnamnesisFilter,
    placeholder: str,
) -> list[HistoryRow]:
    """Histórico com o nome do paciente resolvido; placeholder se ausente."""
    query = _filtered_query(criteria).add_columns(Patient.name)
    if not criteria.patient_name:
        query = query.outerjoin(Patient, Patient.id == Anamnesis.patient_id)
    result = await db.execute(query)
    return [
        HistoryRow(
            id=record.id,
            patient_id=record.patient_id,
            patient_name=name or placeholder,
            exam_type=record.exam_type,
            exam_subtype=record.exam_subtype,
            created_by=record.created_by,
            created_at=record.created_at,
        )
        for record, name in result.all()
    ]
