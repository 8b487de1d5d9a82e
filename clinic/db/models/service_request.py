from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING
from datetime import datetime
from uuid import UUID, uuid4

from clinic.core.utils import utcnow
from clinic.db.types import UTCDateTime
from .enums import PreferredTime, RequestStatus

if TYPE_CHECKING:
    from .patient import Patient
    from .service_type import ServiceTypeDefinition

class ServiceRequest(SQLModel, table=True):
    __tablename__ = "service_requests"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    patient_id: UUID = Field(foreign_key="patients.id", index=True)
    service_type_id: UUID = Field(foreign_key="service_types.id")
    preferred_doctor_id: Optional[UUID] = Field(default=None, foreign_key="doctors.id")
    preferred_date_1: datetime = Field(sa_type=UTCDateTime)
    preferred_date_2: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    preferred_date_3: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    preferred_time: PreferredTime
    reason: str
    urgent: bool = Field(default=False)
    additional_notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    status: RequestStatus = Field(default=RequestStatus.PENDING, index=True)
    service_id: Optional[UUID] = Field(default=None, foreign_key="services.id")
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)

    patient: "Patient" = Relationship(sa_relationship_kwargs={"lazy": "selectin"})
    service_type: "ServiceTypeDefinition" = Relationship(sa_relationship_kwargs={"lazy": "selectin"})
