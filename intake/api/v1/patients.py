"""
Endpoints de pacientes.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from intake.core.clock import local_day_bounds
from intake.database import get_db
from intake.schemas.anamnesis import AnamnesisListResponse
from intake.schemas.patient import (
    PatientCreate,
    PatientListResponse,
    PatientResponse,
    PatientUpdate,
)
from intake.services import anamnesis_service, patient_service

router = APIRouter()


@router.get("", response_model=PatientListResponse)
async def list_patients(db: AsyncSession = Depends(get_db)):
    """Lista todos os pacientes, cadastros mais recentes primeiro."""
    items = await patient_service.list_patients(db)
    return PatientListResponse(items=items, total=len(items))


@router.get("/search", response_model=PatientListResponse)
async def search_patients(
    q: str = Query(..., min_length=1, description="Nome, ID do paciente ou e-mail"),
    db: AsyncSession = Depends(get_db),
):
    """Busca por substring, sem diferenciar maiúsculas."""
    items = await patient_service.search_patients(db, q)
    return PatientListResponse(items=items, total=len(items))


@router.get("/today", response_model=PatientListResponse)
async def todays_appointments(db: AsyncSession = Depends(get_db)):
    """Pacientes cadastrados hoje no fuso configurado."""
    start, end = local_day_bounds()
    items = await patient_service.list_created_between(db, start, end)
    return PatientListResponse(items=items, total=len(items))


@router.get("/{patient_id}", response_model=PatientResponse)
async def get_patient(patient_id: UUID, db: AsyncSession = Depends(get_db)):
    return await patient_service.get_patient(db, patient_id)


@router.post("", response_model=PatientResponse, status_code=201)
async def create_patient(data: PatientCreate, db: AsyncSession = Depends(get_db)):
    return await patient_service.create_patient(db, data)


@router.put("/{patient_id}", response_model=PatientResponse)
async def update_patient(
    patient_id: UUID,
    data: PatientUpdate,
    db: AsyncSession = Depends(get_db),
):
    """
    Atualiza um paciente existente.
    Só os campos enviados são alterados.
    """
    return await patient_service.update_patient(db, patient_id, data)


@router.get("/{patient_id}/anamneses", response_model=AnamnesisListResponse)
async def list_patient_anamneses(patient_id: UUID, db: AsyncSession = Depends(get_db)):
    """Fichas do paciente, mais recentes primeiro."""
    await patient_service.get_patient(db, patient_id)
    items = await anamnesis_service.list_patient_anamneses(db, patient_id)
    return AnamnesisListResponse(items=items, total=len(items))
