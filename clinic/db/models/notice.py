from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING
from datetime import datetime
from uuid import UUID, uuid4

from clinic.core.utils import utcnow
from clinic.db.types import UTCDateTime

if TYPE_CHECKING:
    from .service import Service, ServiceParticipant

class Notice(SQLModel, table=True):
    __tablename__ = "notices"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    service_id: UUID = Field(foreign_key="services.id", index=True)
    participant_id: UUID = Field(foreign_key="service_participants.id", index=True)
    issue_date: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    unique_notice_number: Optional[str] = Field(default=None, max_length=50, unique=True)
    expiry_date: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    reason_for_issuance: Optional[str] = None
    fitness_status: Optional[str] = Field(default=None, max_length=50)
    recommendations: Optional[str] = None
    attachment_path: Optional[str] = Field(default=None, max_length=512)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)

    service: "Service" = Relationship(sa_relationship_kwargs={"lazy": "selectin"})
    participant: "ServiceParticipant" = Relationship(sa_relationship_kwargs={"lazy": "selectin"})

    def is_valid(self, now: datetime) -> bool:
        return self.expiry_date is None or self.expiry_date > now
