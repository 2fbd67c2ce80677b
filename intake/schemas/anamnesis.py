"""
Schemas de Anamnesis: ficha de preparo para tomografia / ressonância.

Todos os sub-registros têm defaults "vazios" (False / ""), de modo que
`AnamnesisDraft()` representa um formulário em branco.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from intake.models.anamnesis import ExamType, SignatureMethod


# ── Sub-registros ────────────────────────────────────

class InitialScreening(BaseModel):
    """Avaliação inicial."""
    has_consent: bool = False
    has_identification_tag: bool = False


class PatientCondition(BaseModel):
    # Mobilidade
    walking: bool = False
    walking_with_help: bool = False
    wheelchair: bool = False
    stretcher: bool = False
    sitting: bool = False
    # Estado mental
    oriented: bool = False
    confused: bool = False
    anxious: bool = False
    calm: bool = False
    phobic: bool = False
    accompanied_by: str = ""


class PreviousExams(BaseModel):
    has: bool = False
    description: str = ""


class PersonalHistory(BaseModel):
    """Antecedentes pessoais."""
    hypertension: bool = False
    diabetes: bool = False
    anxiety_depression: bool = False
    cardiopathy: bool = False
    asthma: bool = False
    chronic_kidney_disease: bool = False
    cholesterol: bool = False
    thyroid: bool = False
    other_conditions: str = ""


class MedicationUsage(BaseModel):
    using: bool = False
    description: str = ""


class Medication(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    dosage: str | None = Field(None, max_length=100)
    frequency: str | None = Field(None, max_length=100)


class AllergyInfo(BaseModel):
    has: bool = False
    description: str = ""
    unknown: bool = False
    contrast_allergy: bool = False


class Allergy(BaseModel):
    type: str = Field(..., min_length=1, max_length=100)
    reaction: str | None = Field(None, max_length=500)


class ExamPreparation(BaseModel):
    done: bool = False
    fasting: bool = False
    fasting_hours: str = ""


class Vitals(BaseModel):
    """Sinais vitais: mesmo formato antes e depois do exame."""
    time: str = ""
    blood_pressure: str = ""
    heart_rate: str = ""
    o2_saturation: str = ""


class Catheter(BaseModel):
    used: bool = False
    size: str = ""


class VenousPuncture(BaseModel):
    location: str = ""
    scalp_catheter: Catheter = Field(default_factory=Catheter)
    abocath_catheter: Catheter = Field(default_factory=Catheter)
    valved_extender: bool = False


class ExamRoom(BaseModel):
    pre_exam: Vitals = Field(default_factory=Vitals)
    venous_puncture: VenousPuncture = Field(default_factory=VenousPuncture)


class PostExam(BaseModel):
    end_time: str = ""
    peripheral_access_removed: bool = False
    vitals: Vitals = Field(default_factory=Vitals)


class ReportEntry(BaseModel):
    date_time: str = ""
    description: str = ""


class Signature(BaseModel):
    """Assinatura concluída: desenho (data URL) ou token externo, nunca ambos."""
    method: SignatureMethod
    image_data: str | None = None
    external_token: str | None = None
    signed_at: datetime | None = None

    @model_validator(mode="after")
    def check_payload(self) -> "Signature":
        if self.method == SignatureMethod.DRAWING:
            if not self.image_data or self.external_token:
                raise ValueError(
                    "Assinatura desenhada exige image_data e não aceita external_token"
                )
        elif not self.external_token or self.image_data:
            raise ValueError(
                "Assinatura gov.br exige external_token e não aceita image_data"
            )
        return self


# ── Agregado ─────────────────────────────────────────

class AnamnesisDraft(BaseModel):
    """Formato completo da ficha, usado como rascunho do formulário."""
    exam_type: ExamType | None = None
    exam_subtype: str | None = Field(None, max_length=200)
    initial_screening: InitialScreening = Field(default_factory=InitialScreening)
    patient_condition: PatientCondition = Field(default_factory=PatientCondition)
    has_dental_prosthesis: bool = False
    previous_exams: PreviousExams = Field(default_factory=PreviousExams)
    personal_history: PersonalHistory = Field(default_factory=PersonalHistory)
    medication_usage: MedicationUsage = Field(default_factory=MedicationUsage)
    medications: list[Medication] = Field(default_factory=list)
    allergy_info: AllergyInfo = Field(default_factory=AllergyInfo)
    allergies: list[Allergy] = Field(default_factory=list)
    exam_preparation: ExamPreparation = Field(default_factory=ExamPreparation)
    exam_room: ExamRoom = Field(default_factory=ExamRoom)
    post_exam: PostExam = Field(default_factory=PostExam)
    reports: list[ReportEntry] = Field(default_factory=lambda: [ReportEntry()])
    patient_signature: Signature | None = None
    professional_signature: Signature | None = None


class AnamnesisCreate(AnamnesisDraft):
    patient_id: UUID
    exam_type: ExamType


class AnamnesisUpdate(BaseModel):
    """
    Atualização parcial. Grupos um-para-um são mesclados campo a campo;
    medications, allergies e reports, quando enviados, substituem a coleção.
    """
    exam_type: ExamType | None = None
    exam_subtype: str | None = Field(None, max_length=200)
    initial_screening: InitialScreening | None = None
    patient_condition: PatientCondition | None = None
    has_dental_prosthesis: bool | None = None
    previous_exams: PreviousExams | None = None
    personal_history: PersonalHistory | None = None
    medication_usage: MedicationUsage | None = None
    medications: list[Medication] | None = None
    allergy_info: AllergyInfo | None = None
    allergies: list[Allergy] | None = None
    exam_preparation: ExamPreparation | None = None
    exam_room: ExamRoom | None = None
    post_exam: PostExam | None = None
    reports: list[ReportEntry] | None = None
    patient_signature: Signature | None = None
    professional_signature: Signature | None = None


class AnamnesisResponse(AnamnesisDraft):
    id: UUID
    patient_id: UUID
    exam_type: ExamType
    created_by: str
    created_at: datetime
    updated_at: datetime


class AnamnesisListResponse(BaseModel):
    items: list[AnamnesisResponse]
    total: int


class AnamnesisFilter(BaseModel):
    """Critérios do histórico. Limites de data inclusivos sobre created_at."""
    start: datetime | None = None
    end: datetime | None = None
    exam_type: ExamType | None = None
    patient_name: str | None = None


class HistoryRow(BaseModel):
    """Linha do histórico: ficha + nome do paciente resolvido."""
    id: UUID
    patient_id: UUID
    patient_name: str
    exam_type: ExamType
    exam_subtype: str | None = None
    created_by: str
    created_at: datetime
