"""
Tests dos controladores de formulário e da edição por caminho.
"""

import copy
import uuid

import pytest

from intake.core.exceptions import ValidationException
from intake.forms.anamnesis_form import AnamnesisFormController
from intake.forms.draft import get_path, set_path
from intake.forms.patient_form import PatientFormController


# ── set_path ─────────────────────────────────────────

def test_set_path_nested_and_list_index():
    draft = {"exam_room": {"pre_exam": {"heart_rate": ""}}, "reports": [{"description": ""}]}

    set_path(draft, "exam_room.pre_exam.heart_rate", "72")
    set_path(draft, "reports.0.description", "Sem intercorrências")

    assert draft["exam_room"]["pre_exam"]["heart_rate"] == "72"
    assert get_path(draft, "reports.0.description") == "Sem intercorrências"


def test_set_path_rejects_unknown_fields():
    draft = {"patient_condition": {"walking": False}, "reports": []}

    with pytest.raises(ValidationException):
        set_path(draft, "patient_condition.flying", True)
    with pytest.raises(ValidationException):
        set_path(draft, "reports.0.description", "x")
    with pytest.raises(ValidationException):
        set_path(draft, "", True)
    assert draft == {"patient_condition": {"walking": False}, "reports": []}


# ── Formulário de anamnese ───────────────────────────

async def _patient(memory_stores, patient_fields):
    patients, _ = memory_stores
    return await patients.create(patient_fields())


async def test_blank_form_has_one_empty_report(memory_stores, patient_fields):
    _, anamneses = memory_stores
    form = AnamnesisFormController(anamneses, uuid.uuid4())

    assert form.draft["reports"] == [{"date_time": "", "description": ""}]
    assert form.draft["exam_type"] is None
    form.add_report()
    form.set_report(1, "description", "Retorno")
    assert len(form.draft["reports"]) == 2


async def test_submit_creates_record(memory_stores, patient_fields):
    patient = await _patient(memory_stores, patient_fields)
    _, anamneses = memory_stores
    form = AnamnesisFormController(anamneses, patient.id, created_by="enf-01")

    form.set_exam("resonance", "Joelho")
    form.set_screening("has_consent", True)
    form.set_condition("wheelchair", True)
    form.set_history("diabetes", True)
    form.set_pre_exam_vitals("blood_pressure", "130/85")
    form.set_venous_puncture("scalp_catheter.used", True)
    form.set_post_exam_vitals("o2_saturation", "98%")
    form.add_medication("Metformina", "850mg")
    form.add_allergy("Iodo", "Edema")
    form.set_report(0, "description", "Paciente colaborativo")
    signature = form.signature("patient")
    signature.choose_method("drawing")
    signature.draw("data:image/png;base64,AAA")
    signature.save_drawing()

    record = await form.submit()

    assert form.error is None
    assert record.exam_type == "resonance"
    assert record.exam_subtype == "Joelho"
    assert record.patient_condition.wheelchair is True
    assert record.exam_room.venous_puncture.scalp_catheter.used is True
    assert record.post_exam.vitals.o2_saturation == "98%"
    assert record.medications[0].dosage == "850mg"
    assert record.patient_signature.method == "drawing"
    assert record.professional_signature is None
    assert form.anamnesis_id == record.id


async def test_submit_without_exam_type_keeps_draft(memory_stores, patient_fields):
    patient = await _patient(memory_stores, patient_fields)
    _, anamneses = memory_stores
    form = AnamnesisFormController(anamneses, patient.id)
    form.set_history("asthma", True)

    assert await form.submit() is None
    assert form.error == "Selecione o tipo de exame"
    assert form.draft["personal_history"]["asthma"] is True
    assert anamneses.anamneses == []


async def test_submit_failure_keeps_draft(memory_stores):
    _, anamneses = memory_stores
    form = AnamnesisFormController(anamneses, uuid.uuid4())
    form.set_exam("tomography")
    form.add_medication("Atenolol")
    before = copy.deepcopy(form.draft)

    assert await form.submit() is None

    assert form.error == "Paciente não encontrado"
    assert form.draft == before
    assert form.anamnesis_id is None
    assert form.is_loading is False


async def test_edit_loads_record_and_replaces_collections(memory_stores, patient_fields):
    patient = await _patient(memory_stores, patient_fields)
    _, anamneses = memory_stores
    creator = AnamnesisFormController(anamneses, patient.id)
    creator.set_exam("tomography", "Tórax")
    creator.add_medication("Atenolol")
    creator.add_medication("Losartana")
    professional = creator.signature("professional")
    professional.choose_method("govbr")
    await professional.sign_external()
    created = await creator.submit()

    editor = AnamnesisFormController(anamneses, uuid.uuid4(), anamnesis_id=created.id)
    assert await editor.load() is True
    assert editor.patient_id == patient.id
    assert [m["name"] for m in editor.draft["medications"]] == ["Atenolol", "Losartana"]
    assert editor.signature("professional").is_signed

    editor.remove_medication(0)
    editor.set_exam("tomography", None)
    updated = await editor.submit()

    assert [m.name for m in updated.medications] == ["Losartana"]
    assert updated.exam_subtype is None
    assert updated.professional_signature.external_token.startswith("govbr-")


async def test_edit_unknown_record(memory_stores):
    _, anamneses = memory_stores
    form = AnamnesisFormController(anamneses, uuid.uuid4(), anamnesis_id=uuid.uuid4())

    assert await form.load() is False
    assert form.error == "Registro de anamnese não encontrado"


async def test_edit_submit_requires_loaded_record(memory_stores, patient_fields):
    patient = await _patient(memory_stores, patient_fields)
    _, anamneses = memory_stores
    creator = AnamnesisFormController(anamneses, patient.id)
    creator.set_exam("tomography")
    creator.add_medication("Atenolol")
    created = await creator.submit()

    editor = AnamnesisFormController(anamneses, patient.id, anamnesis_id=created.id)
    editor.set_exam("resonance")

    assert await editor.submit() is None
    assert editor.error == "Ficha ainda não carregada para edição"
    stored = await anamneses.get_by_id(created.id)
    assert stored.exam_type == "tomography"
    assert [m.name for m in stored.medications] == ["Atenolol"]

    assert await editor.load() is True
    editor.set_exam("resonance")
    updated = await editor.submit()
    assert updated.exam_type == "resonance"
    assert [m.name for m in updated.medications] == ["Atenolol"]


# ── Formulário de paciente ───────────────────────────

async def test_patient_form_requires_fields(memory_stores):
    patients, _ = memory_stores
    form = PatientFormController(patients)
    form.set("name", "Ana Silva")

    assert await form.submit() is None
    assert form.error == "Campos obrigatórios: ID do paciente, Data de nascimento, Sexo"
    assert form.draft["name"] == "Ana Silva"


async def test_patient_form_rejects_unknown_field(memory_stores):
    patients, _ = memory_stores
    form = PatientFormController(patients)

    with pytest.raises(ValidationException):
        form.set("cpf", "123.456.789-00")
    assert "cpf" not in form.draft


async def test_patient_form_create_and_edit(memory_stores):
    patients, _ = memory_stores
    form = PatientFormController(patients)
    for field, value in {
        "patient_id": "PAT-010",
        "name": "Ana Silva",
        "birth_date": "1985-04-12",
        "gender": "female",
        "phone": "",
        "email": "",
    }.items():
        form.set(field, value)

    created = await form.submit()
    assert created.phone is None
    assert created.email is None

    editor = PatientFormController(patients, created.id)
    assert await editor.load() is True
    assert editor.draft["birth_date"] == "1985-04-12"
    editor.set("phone", "(11) 95555-0000")
    updated = await editor.submit()

    assert updated.phone == "(11) 95555-0000"
    assert updated.name == "Ana Silva"


async def test_patient_form_invalid_email(memory_stores, patient_fields):
    patients, _ = memory_stores
    form = PatientFormController(patients)
    form.draft.update(patient_fields(email="sem-arroba"))

    assert await form.submit() is None
    assert "email" in form.error
    assert patients.patients == []
