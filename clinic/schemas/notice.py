from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime
from typing import Optional

from clinic.db.models.enums import ServiceType
from clinic.schemas.user import DoctorSummary, PatientSummary

class NoticeBase(BaseModel):
    issue_date: Optional[datetime] = None
    unique_notice_number: Optional[str] = Field(default=None, min_length=1, max_length=50)
    expiry_date: Optional[datetime] = None
    reason_for_issuance: Optional[str] = None
    fitness_status: Optional[str] = Field(default=None, max_length=50)
    recommendations: Optional[str] = None
    attachment_path: Optional[str] = Field(default=None, max_length=512)

class NoticeCreate(NoticeBase):
    service_id: UUID
    participant_id: UUID

    class Config:
        extra = "forbid"

class NoticeUpdate(NoticeBase):
    class Config:
        extra = "forbid"

class NoticeResponse(BaseModel):
    id: UUID
    service_id: UUID
    participant_id: UUID
    issue_date: datetime
    unique_notice_number: Optional[str] = None
    expiry_date: Optional[datetime] = None
    reason_for_issuance: Optional[str] = None
    fitness_status: Optional[str] = None
    recommendations: Optional[str] = None
    attachment_path: Optional[str] = None
    is_valid: bool
    service_type: ServiceType
    service_start_time: datetime
    doctor: DoctorSummary
    patient: PatientSummary

class NoticeNumberResponse(BaseModel):
    notice_number: str
