from sqlmodel import SQLModel, Field
from sqlalchemy import Column, UniqueConstraint
from datetime import datetime
from uuid import UUID, uuid4

from clinic.core.utils import utcnow
from clinic.db.types import JSONType, UTCDateTime

class PatientForm(SQLModel, table=True):
    __tablename__ = "patient_forms"
    __table_args__ = (UniqueConstraint("patient_id", "form_type", name="uq_patient_form_type"),)
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    patient_id: UUID = Field(foreign_key="patients.id", index=True)
    form_type: str
    form_data: dict = Field(default_factory=dict, sa_column=Column(JSONType, nullable=False))
    status: str = Field(default="Completed")
    submission_date: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
