from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime
from typing import Optional

from clinic.db.models.enums import FeedbackTarget

class FeedbackCreate(BaseModel):
    service_id: UUID
    participant_id: UUID
    target_type: FeedbackTarget
    rating_score: Optional[int] = Field(default=None, ge=1, le=5)
    comments: Optional[str] = None
    is_anonymous: bool = False

    class Config:
        extra = "forbid"

class FeedbackResponse(BaseModel):
    id: UUID
    service_id: UUID
    participant_id: Optional[UUID] = None
    target_type: FeedbackTarget
    rating_score: Optional[int] = None
    comments: Optional[str] = None
    is_anonymous: bool
    submission_date: datetime
