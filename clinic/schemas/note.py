from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime
from typing import Optional

from clinic.db.models.enums import ServiceType
from clinic.schemas.user import DoctorSummary, PatientSummary

class NoteCreate(BaseModel):
    patient_id: UUID
    # When given, the patient must take part in this service
    service_id: Optional[UUID] = None
    content: str = Field(min_length=1)

    class Config:
        extra = "forbid"

class NoteUpdate(BaseModel):
    content: str = Field(min_length=1)

    class Config:
        extra = "forbid"

class NoteDetailResponse(BaseModel):
    id: UUID
    service_id: Optional[UUID] = None
    participant_id: Optional[UUID] = None
    service_type: Optional[ServiceType] = None
    service_start_time: Optional[datetime] = None
    content: str
    created_at: datetime
    updated_at: datetime
    doctor: DoctorSummary
    patient: Optional[PatientSummary] = None
