"""
Modelos SQLAlchemy: exportar todos para que o Alembic os detecte.
"""

from intake.models.patient import Gender, Patient
from intake.models.anamnesis import (
    Anamnesis,
    AnamnesisAllergy,
    AnamnesisMedication,
    AnamnesisReport,
    AnamnesisSignature,
    ExamType,
    SignatureMethod,
    SignatureRole,
)

__all__ = [
    "Gender",
    "Patient",
    "Anamnesis",
    "AnamnesisAllergy",
    "AnamnesisMedication",
    "AnamnesisReport",
    "AnamnesisSignature",
    "ExamType",
    "SignatureMethod",
    "SignatureRole",
]
