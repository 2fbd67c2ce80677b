"""
Fixtures compartilhadas do Pytest.
Configura o banco de teste, clientes HTTP e stores.
"""

from collections.abc import AsyncGenerator
from datetime import date

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from intake.database import Base, get_db
from intake.main import app
from intake.models.patient import Gender, Patient
from intake.stores.anamnesis_store import AnamnesisStore
from intake.stores.backend import SqlAnamnesisBackend, SqlPatientBackend
from intake.stores.memory import InMemoryAnamnesisBackend, InMemoryPatientBackend
from intake.stores.patient_store import PatientStore

# ── Engine de teste (SQLite async) ───────────────────
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
test_session_factory = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)


@pytest_asyncio.fixture(autouse=True)
async def setup_database():
    """Cria e destrói as tabelas a cada teste."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    async with test_session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Cliente HTTP de teste que usa o banco de teste."""

    async def _get_test_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_test_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_patient(db_session: AsyncSession) -> Patient:
    patient = Patient(
        patient_id="PAT-100",
        name="Ana Silva",
        birth_date=date(1985, 4, 12),
        gender=Gender.FEMALE,
        phone="(11) 98765-4321",
        email="ana.silva@example.com",
    )
    db_session.add(patient)
    await db_session.commit()
    await db_session.refresh(patient)
    return patient


# ── Stores ───────────────────────────────────────────

@pytest.fixture
def session_factory() -> async_sessionmaker[AsyncSession]:
    return test_session_factory


@pytest.fixture
def memory_backends() -> tuple[InMemoryPatientBackend, InMemoryAnamnesisBackend]:
    patients = InMemoryPatientBackend(latency_ms=0)
    return patients, InMemoryAnamnesisBackend(patients, latency_ms=0)


@pytest.fixture
def memory_stores(memory_backends) -> tuple[PatientStore, AnamnesisStore]:
    patients, anamneses = memory_backends
    return PatientStore(patients), AnamnesisStore(anamneses)


@pytest.fixture
def sql_stores(session_factory) -> tuple[PatientStore, AnamnesisStore]:
    return (
        PatientStore(SqlPatientBackend(session_factory)),
        AnamnesisStore(SqlAnamnesisBackend(session_factory)),
    )


@pytest.fixture(params=["memory", "sql"])
def stores(request, memory_stores, sql_stores) -> tuple[PatientStore, AnamnesisStore]:
    """Os dois backends devem se comportar igual."""
    return memory_stores if request.param == "memory" else sql_stores


@pytest.fixture
def patient_fields():
    """Fábrica de campos válidos de cadastro."""

    def _fields(**overrides) -> dict:
        fields = {
            "patient_id": "PAT-001",
            "name": "Carlos Oliveira",
            "birth_date": "1972-08-22",
            "gender": "male",
            "phone": "(11) 91234-5678",
            "email": "carlos.oliveira@example.com",
        }
        fields.update(overrides)
        return fields

    return _fields
