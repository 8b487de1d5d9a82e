from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING
from datetime import datetime
from uuid import UUID, uuid4

from clinic.core.utils import utcnow
from clinic.db.types import UTCDateTime

if TYPE_CHECKING:
    from .doctor import Doctor
    from .patient import Patient
    from .service import Service

class Note(SQLModel, table=True):
    """Clinical note written by a doctor about a patient, optionally tied to one of the patient's services."""
    __tablename__ = "notes"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    service_id: Optional[UUID] = Field(default=None, foreign_key="services.id", index=True)
    participant_id: Optional[UUID] = Field(default=None, foreign_key="service_participants.id")
    doctor_id: UUID = Field(foreign_key="doctors.id", index=True)
    patient_id: Optional[UUID] = Field(default=None, foreign_key="patients.id", index=True)
    content: str
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)

    doctor: "Doctor" = Relationship(sa_relationship_kwargs={"lazy": "selectin"})
    patient: Optional["Patient"] = Relationship(sa_relationship_kwargs={"lazy": "selectin"})
    service: Optional["Service"] = Relationship(sa_relationship_kwargs={"lazy": "selectin"})
