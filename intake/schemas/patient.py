"""
Schemas de Patient.
Campos obrigatórios do cadastro: patient_id, name, birth_date, gender.
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from intake.models.patient import Gender


def _required_text(v: str) -> str:
    cleaned = v.strip()
    if not cleaned:
        raise ValueError("Campo obrigatório")
    return cleaned


class PatientBase(BaseModel):
    patient_id: str = Field(
        ..., min_length=1, max_length=50,
        description="Número de identificação do paciente"
    )
    name: str = Field(..., min_length=1, max_length=200)
    birth_date: date
    gender: Gender
    phone: str | None = Field(None, max_length=30)
    email: EmailStr | None = None

    @field_validator("patient_id", "name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _required_text(v)


class PatientCreate(PatientBase):
    pass


class PatientUpdate(BaseModel):
    patient_id: str | None = Field(None, min_length=1, max_length=50)
    name: str | None = Field(None, min_length=1, max_length=200)
    birth_date: date | None = None
    gender: Gender | None = None
    phone: str | None = Field(None, max_length=30)
    email: EmailStr | None = None

    @field_validator("patient_id", "name")
    @classmethod
    def not_blank(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _required_text(v)


class PatientResponse(BaseModel):
    id: UUID
    patient_id: str
    name: str
    birth_date: date
    gender: Gender
    phone: str | None = None
    email: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PatientListResponse(BaseModel):
    items: list[PatientResponse]
    total: int
