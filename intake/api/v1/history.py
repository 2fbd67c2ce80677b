"""
Histórico de anamneses com o nome do paciente resolvido.
"""

from datetime import date, datetime, timedelta

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from intake.config import get_settings
from intake.core.clock import date_range_bounds, local_tz
from intake.database import get_db
from intake.models.anamnesis import ExamType
from intake.schemas.anamnesis import AnamnesisFilter, HistoryRow
from intake.services import anamnesis_service

router = APIRouter()


@router.get("", response_model=list[HistoryRow])
async def list_history(
    date_from: date | None = Query(None, description="Padrão: hoje menos N dias"),
    date_to: date | None = Query(None, description="Padrão: hoje"),
    exam_type: ExamType | None = Query(None),
    patient_name: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    settings = get_settings()
    if date_from is None and date_to is None:
        today = datetime.now(local_tz()).date()
        date_from = today - timedelta(days=settings.HISTORY_DEFAULT_DAYS)
        date_to = today
    start, end = date_range_bounds(date_from, date_to)
    criteria = AnamnesisFilter(
        start=start, end=end, exam_type=exam_type, patient_name=patient_name or None
    )
    return await anamnesis_service.history_rows(
        db, criteria, settings.PATIENT_PLACEHOLDER_NAME
    )
