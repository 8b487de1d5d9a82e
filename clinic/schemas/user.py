from pydantic import BaseModel
from typing import Optional
from uuid import UUID
from datetime import datetime

from clinic.db.models.enums import Role

class UserResponse(BaseModel):
    id: UUID
    email: str
    first_name: str
    last_name: str
    role: Role
    phone: Optional[str] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True

class CurrentUserResponse(UserResponse):
    doctor_id: Optional[UUID] = None
    patient_id: Optional[UUID] = None

class DoctorSummary(BaseModel):
    id: UUID
    first_name: str
    last_name: str
    specialization: Optional[str] = None

class PatientSummary(BaseModel):
    id: UUID
    first_name: str
    last_name: str
    email: Optional[str] = None
