from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from uuid import UUID, uuid4

from clinic.core.utils import utcnow
from clinic.db.types import UTCDateTime
from .enums import FeedbackTarget

class Feedback(SQLModel, table=True):
    __tablename__ = "feedback"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    service_id: UUID = Field(foreign_key="services.id", index=True)
    participant_id: UUID = Field(foreign_key="service_participants.id")
    target_type: FeedbackTarget
    rating_score: Optional[int] = None
    comments: Optional[str] = None
    is_anonymous: bool = Field(default=False)
    submission_date: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
