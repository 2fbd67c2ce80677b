"""
Endpoints das fichas de anamnese.
"""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Query
from sqlalchemy.ext.asyncio import AsyncSession

from intake.core.clock import date_range_bounds
from intake.database import get_db
from intake.models.anamnesis import ExamType
from intake.schemas.anamnesis import (
    AnamnesisCreate,
    AnamnesisFilter,
    AnamnesisListResponse,
    AnamnesisResponse,
    AnamnesisUpdate,
)
from intake.services import anamnesis_service

router = APIRouter()


def filter_params(
    date_from: date | None = Query(None, description="Desde (inclusive)"),
    date_to: date | None = Query(None, description="Até (inclusive)"),
    exam_type: ExamType | None = Query(None, description="Tipo de exame"),
    patient_name: str | None = Query(None, description="Parte do nome do paciente"),
) -> AnamnesisFilter:
    start, end = date_range_bounds(date_from, date_to)
    return AnamnesisFilter(
        start=start, end=end, exam_type=exam_type, patient_name=patient_name or None
    )


@router.get("", response_model=AnamnesisListResponse)
async def list_anamneses(
    criteria: AnamnesisFilter = Depends(filter_params),
    db: AsyncSession = Depends(get_db),
):
    """Lista as fichas, mais recentes primeiro, com filtros opcionais."""
    items = await anamnesis_service.filter_anamneses(db, criteria)
    return AnamnesisListResponse(items=items, total=len(items))


@router.get("/{anamnesis_id}", response_model=AnamnesisResponse)
async def get_anamnesis(anamnesis_id: UUID, db: AsyncSession = Depends(get_db)):
    return await anamnesis_service.get_anamnesis(db, anamnesis_id)


@router.post("", response_model=AnamnesisResponse, status_code=201)
async def create_anamnesis(
    data: AnamnesisCreate,
    x_user_id: str | None = Header(None),
    db: AsyncSession = Depends(get_db),
):
    """
    Cria a ficha com medicações, alergias, relatório e assinaturas.
    O autor vem do cabeçalho X-User-Id.
    """
    return await anamnesis_service.create_anamnesis(
        db, data, created_by=x_user_id or "anonymous"
    )


@router.put("/{anamnesis_id}", response_model=AnamnesisResponse)
async def update_anamnesis(
    anamnesis_id: UUID,
    data: AnamnesisUpdate,
    db: AsyncSession = Depends(get_db),
):
    """
    Atualização parcial. Grupos são mesclados; coleções enviadas
    substituem as existentes.
    """
    return await anamnesis_service.update_anamnesis(db, anamnesis_id, data)
