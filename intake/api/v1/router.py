"""
Router principal da API v1.
Agrupa todos os sub-routers da versão 1.
"""

from fastapi import APIRouter

from intake.api.v1.anamneses import router as anamneses_router
from intake.api.v1.history import router as history_router
from intake.api.v1.patients import router as patients_router

api_v1_router = APIRouter()

api_v1_router.include_router(
    patients_router,
    prefix="/patients",
    tags=["Pacientes"],
)

api_v1_router.include_router(
    anamneses_router,
    prefix="/anamneses",
    tags=["Anamnese"],
)

api_v1_router.include_router(
    history_router,
    prefix="/history",
    tags=["Histórico"],
)
