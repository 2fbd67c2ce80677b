"""
Serviço de pacientes: CRUD, busca e agenda do dia sobre o banco relacional.
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from intake.core.clock import as_utc, utcnow
from intake.core.exceptions import NotFoundException
from intake.models.patient import Patient
from intake.schemas.patient import (
    PatientCreate,
    PatientResponse,
    PatientUpdate,
)

logger = logging.getLogger(__name__)


def _patient_to_response(patient: Patient) -> PatientResponse:
    return PatientResponse.model_validate(patient)


async def _get_or_404(db: AsyncSession, patient_id: UUID) -> Patient:
    result = await db.execute(select(Patient).where(Patient.id == patient_id))
    patient = result.scalar_one_or_none()
    if not patient:
        raise NotFoundException("Paciente")
    return patient


# ── Criar paciente ───────────────────────────────────

async def create_patient(db: AsyncSession, data: PatientCreate) -> PatientResponse:
    """Cadastra um paciente. id, created_at e updated_at são gerados aqui."""
    patient = Patient(
        patient_id=data.patient_id,
        name=data.name,
        birth_date=data.birth_date,
        gender=data.gender,
        phone=data.phone,
        email=data.email,
    )
    db.add(patient)
    await db.flush()

    logger.info(f"Paciente cadastrado: {patient.id} ({patient.patient_id})")
    return _patient_to_response(patient)


# ── Obter / listar ───────────────────────────────────

async def get_patient(db: AsyncSession, patient_id: UUID) -> PatientResponse:
    return _patient_to_response(await _get_or_404(db, patient_id))


async def list_patients(db: AsyncSession) -> list[PatientResponse]:
    """Todos os pacientes, mais recentes primeiro."""
    result = await db.execute(
        select(Patient).order_by(Patient.created_at.desc())
    )
    return [_patient_to_response(p) for p in result.scalars().all()]


async def search_patients(db: AsyncSession, query: str) -> list[PatientResponse]:
    """
    Busca por substring (sem diferenciar maiúsculas) em nome,
    número de identificação e e-mail. Ordenado por nome.
    """
    term = query.strip().lower()
    result = await db.execute(
        select(Patient)
        .where(
            or_(
                func.lower(Patient.name).contains(term, autoescape=True),
                func.lower(Patient.patient_id).contains(term, autoescape=True),
                func.lower(Patient.email).contains(term, autoescape=True),
            )
        )
        .order_by(Patient.name.asc())
    )
    return [_patient_to_response(p) for p in result.scalars().all()]


async def list_created_between(
    db: AsyncSession, start: datetime, end: datetime
) -> list[PatientResponse]:
    """Pacientes com created_at em [start, end)."""
    result = await db.execute(
        select(Patient)
        .where(
            Patient.created_at >= as_utc(start),
            Patient.created_at < as_utc(end),
        )
        .order_by(Patient.created_at.desc())
    )
    return [_patient_to_response(p) for p in result.scalars().all()]


# ── Atualizar paciente ───────────────────────────────

async def update_patient(
    db: AsyncSession,
    patient_id: UUID,
    data: PatientUpdate,
) -> PatientResponse:
    """
    Mescla apenas os campos enviados; os demais permanecem.
    updated_at é renovado a cada atualização.
    """
    patient = await _get_or_404(db, patient_id)

    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if value is None and field not in ("phone", "email"):
            continue
        setattr(patient, field, value)
    patient.updated_at = utcnow()

    await db.flush()
    logger.info(f"Paciente atualizado: {patient.id} campos={sorted(update_data)}")
    return _patient_to_response(patient)
