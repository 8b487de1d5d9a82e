from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime
from typing import Optional, List

from clinic.db.models.enums import ServiceType, ServiceStatus, AttendanceStatus
from clinic.schemas.user import DoctorSummary, PatientSummary

class ServiceCreate(BaseModel):
    service_type: ServiceType
    doctor_id: UUID
    # patient_id for a consultation, patient_ids for a group
    patient_id: Optional[UUID] = None
    patient_ids: Optional[List[UUID]] = None
    start_time: datetime
    end_time: datetime
    notes: Optional[str] = None

    class Config:
        extra = "forbid"

class ServiceCancel(BaseModel):
    cancel_reason: Optional[str] = Field(default=None, max_length=255)

    class Config:
        extra = "forbid"

class AttendanceUpdate(BaseModel):
    attendance_status: AttendanceStatus

    class Config:
        extra = "forbid"

class ParticipantResponse(BaseModel):
    id: UUID
    patient_id: UUID
    attendance_status: AttendanceStatus
    patient: PatientSummary

class NoteResponse(BaseModel):
    id: UUID
    patient_id: Optional[UUID]
    content: str
    created_at: datetime

    class Config:
        from_attributes = True

class ServiceResponse(BaseModel):
    id: UUID
    service_type: ServiceType
    doctor_id: UUID
    start_time: datetime
    end_time: datetime
    status: ServiceStatus
    cancel_reason: Optional[str] = None
    created_at: datetime
    doctor: DoctorSummary
    participants: List[ParticipantResponse]

class ServiceDetailResponse(ServiceResponse):
    notes: List[NoteResponse] = []

class CalendarParticipant(BaseModel):
    participant_id: UUID
    patient_id: UUID
    name: str
    attendance_status: AttendanceStatus

class CalendarEvent(BaseModel):
    id: UUID
    title: str
    start: datetime
    end: datetime
    status: ServiceStatus
    service_type: ServiceType
    doctor_id: UUID
    participants: List[CalendarParticipant]
