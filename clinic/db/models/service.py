from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import UniqueConstraint
from typing import Optional, List, TYPE_CHECKING
from datetime import datetime
from uuid import UUID, uuid4

from clinic.core.utils import utcnow
from clinic.db.types import UTCDateTime
from .enums import ServiceType, ServiceStatus, AttendanceStatus

if TYPE_CHECKING:
    from .doctor import Doctor
    from .patient import Patient

class Service(SQLModel, table=True):
    __tablename__ = "services"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    service_type: ServiceType
    doctor_id: UUID = Field(foreign_key="doctors.id", index=True)
    start_time: datetime = Field(index=True, sa_type=UTCDateTime)
    end_time: datetime = Field(sa_type=UTCDateTime)
    status: ServiceStatus = Field(default=ServiceStatus.SCHEDULED, index=True)
    cancel_reason: Optional[str] = Field(default=None, max_length=255)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)

    doctor: "Doctor" = Relationship(sa_relationship_kwargs={"lazy": "selectin"})
    participants: List["ServiceParticipant"] = Relationship(
        back_populates="service",
        sa_relationship_kwargs={"lazy": "selectin", "order_by": "ServiceParticipant.added_at"},
    )

class ServiceParticipant(SQLModel, table=True):
    __tablename__ = "service_participants"
    __table_args__ = (UniqueConstraint("service_id", "patient_id", name="uq_service_participant"),)
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    service_id: UUID = Field(foreign_key="services.id", index=True)
    patient_id: UUID = Field(foreign_key="patients.id", index=True)
    attendance_status: AttendanceStatus = Field(default=AttendanceStatus.EXPECTED)
    added_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)

    service: Service = Relationship(back_populates="participants")
    patient: "Patient" = Relationship(sa_relationship_kwargs={"lazy": "selectin"})
