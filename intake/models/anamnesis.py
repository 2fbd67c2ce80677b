"""
Modelo Anamnesis: ficha de preparo para exame de imagem.

Os grupos um-para-um (condição do paciente, antecedentes, sala de exames,
pós-exame...) ficam em colunas JSON da própria linha. As coleções
(medicações, alergias, relatório) e as assinaturas são tabelas filhas com
cascade delete-orphan: atribuir uma nova lista substitui a coleção inteira.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from intake.core.clock import utcnow
from intake.database import Base


def _values(enum_cls: type[enum.Enum]) -> list[str]:
    return [m.value for m in enum_cls]


class ExamType(str, enum.Enum):
    """Modalidade do exame."""
    TOMOGRAPHY = "tomography"
    RESONANCE = "resonance"
    OTHER = "other"


class SignatureMethod(str, enum.Enum):
    """Assinatura desenhada na tela ou assinatura digital externa (gov.br)."""
    DRAWING = "drawing"
    GOVBR = "govbr"


class SignatureRole(str, enum.Enum):
    PATIENT = "patient"
    PROFESSIONAL = "professional"


class Anamnesis(Base):
    __tablename__ = "anamneses"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    patient_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("patients.id"), nullable=False
    )

    # ── Exame ────────────────────────────────────────
    exam_type: Mapped[ExamType] = mapped_column(
        Enum(ExamType, values_callable=_values), nullable=False
    )
    exam_subtype: Mapped[str | None] = mapped_column(
        String(200), comment="Ex.: Crânio, Coluna Lombar"
    )

    # ── Avaliação inicial ────────────────────────────
    has_consent: Mapped[bool] = mapped_column(Boolean, default=False)
    has_identification_tag: Mapped[bool] = mapped_column(Boolean, default=False)
    has_dental_prosthesis: Mapped[bool] = mapped_column(Boolean, default=False)

    # ── Grupos um-para-um ────────────────────────────
    patient_condition: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    previous_exams: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    personal_history: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    medication_usage: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    allergy_info: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    exam_preparation: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    exam_room: Mapped[dict] = mapped_column(
        JSON, nullable=False, default=dict,
        comment="Sinais vitais pré-exame e punção venosa"
    )
    post_exam: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    # ── Metadados ────────────────────────────────────
    created_by: Mapped[str] = mapped_column(
        String(100), nullable=False, comment="Referência opaca ao usuário"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    # ── Relações ─────────────────────────────────────
    patient: Mapped["Patient"] = relationship(  # noqa: F821
        "Patient", back_populates="anamneses"
    )
    medications: Mapped[list["AnamnesisMedication"]] = relationship(
        back_populates="anamnesis",
        cascade="all, delete-orphan",
        order_by="AnamnesisMedication.position",
        lazy="selectin",
    )
    allergies: Mapped[list["AnamnesisAllergy"]] = relationship(
        back_populates="anamnesis",
        cascade="all, delete-orphan",
        order_by="AnamnesisAllergy.position",
        lazy="selectin",
    )
    reports: Mapped[list["AnamnesisReport"]] = relationship(
        back_populates="anamnesis",
        cascade="all, delete-orphan",
        order_by="AnamnesisReport.position",
        lazy="selectin",
    )
    signatures: Mapped[list["AnamnesisSignature"]] = relationship(
        back_populates="anamnesis",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_anamnesis_patient", "patient_id"),
        Index("idx_anamnesis_created", "created_at"),
        Index("idx_anamnesis_exam_type", "exam_type"),
    )

    def signature_for(self, role: SignatureRole) -> "AnamnesisSignature | None":
        for signature in self.signatures:
            if signature.role == role:
                return signature
        return None

    def __repr__(self) -> str:
        return f"<Anamnesis {self.exam_type.value} patient={self.patient_id} {self.created_at}>"


class AnamnesisMedication(Base):
    __tablename__ = "anamnesis_medications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    anamnesis_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("anamneses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    dosage: Mapped[str | None] = mapped_column(String(100))
    frequency: Mapped[str | None] = mapped_column(String(100))

    anamnesis: Mapped[Anamnesis] = relationship(back_populates="medications")


class AnamnesisAllergy(Base):
    __tablename__ = "anamnesis_allergies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    anamnesis_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("anamneses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    type: Mapped[str] = mapped_column(
        String(100), nullable=False, comment="Medicamento, alimento, contraste..."
    )
    reaction: Mapped[str | None] = mapped_column(String(500))

    anamnesis: Mapped[Anamnesis] = relationship(back_populates="allergies")


class AnamnesisReport(Base):
    """Entrada do relatório de enfermagem. A lista só cresce pelo formulário."""
    __tablename__ = "anamnesis_reports"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    anamnesis_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("anamneses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    date_time: Mapped[str | None] = mapped_column(String(30))
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    anamnesis: Mapped[Anamnesis] = relationship(back_populates="reports")


class AnamnesisSignature(Base):
    """
    Assinatura do paciente ou do profissional.
    `image_data` (desenho) e `external_token` (gov.br) são exclusivos.
    """
    __tablename__ = "anamnesis_signatures"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    anamnesis_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("anamneses.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[SignatureRole] = mapped_column(
        Enum(SignatureRole, values_callable=_values), nullable=False
    )
    method: Mapped[SignatureMethod] = mapped_column(
        Enum(SignatureMethod, values_callable=_values), nullable=False
    )
    image_data: Mapped[str | None] = mapped_column(
        Text, comment="Data URL PNG da assinatura desenhada"
    )
    external_token: Mapped[str | None] = mapped_column(
        String(500), comment="Token da assinatura digital externa"
    )
    signed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    anamnesis: Mapped[Anamnesis] = relationship(back_populates="signatures")

    __table_args__ = (
        UniqueConstraint("anamnesis_id", "role", name="uq_signature_anamnesis_role"),
    )
