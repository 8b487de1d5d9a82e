from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime
from typing import Optional

from clinic.db.models.enums import PreferredTime, RequestStatus
from clinic.schemas.user import PatientSummary

class ServiceRequestCreate(BaseModel):
    # Defaults to the calling patient's own profile
    patient_id: Optional[UUID] = None
    service_type_id: UUID
    preferred_doctor_id: Optional[UUID] = None
    preferred_date_1: datetime
    preferred_date_2: Optional[datetime] = None
    preferred_date_3: Optional[datetime] = None
    preferred_time: PreferredTime
    reason: str = Field(min_length=10)
    urgent: bool = False
    additional_notes: Optional[str] = None

    class Config:
        extra = "forbid"

class ServiceRequestReject(BaseModel):
    rejection_reason: Optional[str] = None

    class Config:
        extra = "forbid"

class ServiceRequestScheduled(BaseModel):
    service_id: UUID

    class Config:
        extra = "forbid"

class ServiceRequestResponse(BaseModel):
    id: UUID
    patient_id: UUID
    service_type_id: UUID
    service_type_name: Optional[str] = None
    preferred_doctor_id: Optional[UUID] = None
    preferred_date_1: datetime
    preferred_date_2: Optional[datetime] = None
    preferred_date_3: Optional[datetime] = None
    preferred_time: PreferredTime
    reason: str
    urgent: bool
    additional_notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    status: RequestStatus
    service_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime
    patient: Optional[PatientSummary] = None
