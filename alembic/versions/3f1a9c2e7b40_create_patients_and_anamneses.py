"""create patients and anamneses tables

Revision ID: 3f1a9c2e7b40
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3f1a9c2e7b40"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

gender = sa.Enum("male", "female", "other", name="gender")
exam_type = sa.Enum("tomography", "resonance", "other", name="examtype")
signature_role = sa.Enum("patient", "professional", name="signaturerole")
signature_method = sa.Enum("drawing", "govbr", name="signaturemethod")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _child_key() -> sa.Column:
    return sa.Column(
        "anamnesis_id",
        sa.Uuid(),
        sa.ForeignKey("anamneses.id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "patients",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("patient_id", sa.String(50), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("birth_date", sa.Date(), nullable=False),
        sa.Column("gender", gender, nullable=False),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_patients_patient_id", "patients", ["patient_id"])
    op.create_index("ix_patients_name", "patients", ["name"])

    op.create_table(
        "anamneses",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "patient_id", sa.Uuid(), sa.ForeignKey("patients.id"), nullable=False
        ),
        sa.Column("exam_type", exam_type, nullable=False),
        sa.Column("exam_subtype", sa.String(200), nullable=True),
        sa.Column("has_consent", sa.Boolean(), nullable=True),
        sa.Column("has_identification_tag", sa.Boolean(), nullable=True),
        sa.Column("has_dental_prosthesis", sa.Boolean(), nullable=True),
        sa.Column("patient_condition", sa.JSON(), nullable=False),
        sa.Column("previous_exams", sa.JSON(), nullable=False),
        sa.Column("personal_history", sa.JSON(), nullable=False),
        sa.Column("medication_usage", sa.JSON(), nullable=False),
        sa.Column("allergy_info", sa.JSON(), nullable=False),
        sa.Column("exam_preparation", sa.JSON(), nullable=False),
        sa.Column("exam_room", sa.JSON(), nullable=False),
        sa.Column("post_exam", sa.JSON(), nullable=False),
        sa.Column("created_by", sa.String(100), nullable=False),
        *_timestamps(),
    )
    op.create_index("idx_anamnesis_patient", "anamneses", ["patient_id"])
    op.create_index("idx_anamnesis_created", "anamneses", ["created_at"])
    op.create_index("idx_anamnesis_exam_type", "anamneses", ["exam_type"])

    op.create_table(
        "anamnesis_medications",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _child_key(),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("dosage", sa.String(100), nullable=True),
        sa.Column("frequency", sa.String(100), nullable=True),
    )
    op.create_table(
        "anamnesis_allergies",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _child_key(),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(100), nullable=False),
        sa.Column("reaction", sa.String(500), nullable=True),
    )
    op.create_table(
        "anamnesis_reports",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _child_key(),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("date_time", sa.String(30), nullable=True),
        sa.Column("description", sa.Text(), nullable=False),
    )
    for table in ("anamnesis_medications", "anamnesis_allergies", "anamnesis_reports"):
        op.create_index(f"ix_{table}_anamnesis_id", table, ["anamnesis_id"])

    op.create_table(
        "anamnesis_signatures",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _child_key(),
        sa.Column("role", signature_role, nullable=False),
        sa.Column("method", signature_method, nullable=False),
        sa.Column("image_data", sa.Text(), nullable=True),
        sa.Column("external_token", sa.String(500), nullable=True),
        sa.Column("signed_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint(
            "anamnesis_id", "role", name="uq_signature_anamnesis_role"
        ),
    )


def downgrade() -> None:
    op.drop_table("anamnesis_signatures")
    for table in ("anamnesis_reports", "anamnesis_allergies", "anamnesis_medications"):
        op.drop_index(f"ix_{table}_anamnesis_id", table_name=table)
        op.drop_table(table)
    op.drop_index("idx_anamnesis_exam_type", table_name="anamneses")
    op.drop_index("idx_anamnesis_created", table_name="anamneses")
    op.drop_index("idx_anamnesis_patient", table_name="anamneses")
    op.drop_table("anamneses")
    op.drop_index("ix_patients_name", table_name="patients")
    op.drop_index("ix_patients_patient_id", table_name="patients")
    op.drop_table("patients")

    bind = op.get_bind()
    for enum_type in (signature_method, signature_role, exam_type, gender):
        enum_type.drop(bind, checkfirst=True)
