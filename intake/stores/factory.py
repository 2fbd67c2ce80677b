"""
Montagem dos stores conforme `STORE_BACKEND` (sql | memory).
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from intake.config import Settings, get_settings
from intake.stores.anamnesis_store import AnamnesisStore
from intake.stores.backend import SqlAnamnesisBackend, SqlPatientBackend
from intake.stores.memory import build_demo_backends
from intake.stores.patient_store import PatientStore

logger = logging.getLogger(__name__)


@dataclass
class Stores:
    patients: PatientStore
    anamneses: AnamnesisStore


def build_stores(
    settings: Settings | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> Stores:
    settings = settings or get_settings()
    if settings.STORE_BACKEND == "memory":
        patient_backend, anamnesis_backend = build_demo_backends(settings.MOCK_LATENCY_MS)
    else:
        patient_backend = SqlPatientBackend(session_factory)
        anamnesis_backend = SqlAnamnesisBackend(session_factory)
    logger.info(f"Stores inicializados com backend '{settings.STORE_BACKEND}'")
    return Stores(
        patients=PatientStore(patient_backend),
        anamneses=AnamnesisStore(anamnesis_backend),
    )
