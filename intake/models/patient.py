"""
Modelo Patient: pacientes cadastrados na recepção.
`patient_id` é o identificador externo digitado pela recepção (não é único).
"""

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import Date, DateTime, Enum, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from intake.core.clock import utcnow
from intake.database import Base


class Gender(str, enum.Enum):
    """Sexo do paciente."""
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class Patient(Base):
    __tablename__ = "patients"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    patient_id: Mapped[str] = mapped_column(
        String(50), nullable=False, index=True,
        comment="Número de identificação do paciente (prontuário)"
    )

    # ── Dados pessoais ───────────────────────────────
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    birth_date: Mapped[date] = mapped_column(Date, nullable=False)
    gender: Mapped[Gender] = mapped_column(
        Enum(Gender, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    phone: Mapped[str | None] = mapped_column(String(30))
    email: Mapped[str | None] = mapped_column(String(255))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    # ── Relações ─────────────────────────────────────
    anamneses: Mapped[list["Anamnesis"]] = relationship(  # noqa: F821
        "Anamnesis", back_populates="patient"
    )

    def __repr__(self) -> str:
        return f"<Patient {self.patient_id} {self.name}>"
