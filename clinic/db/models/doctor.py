from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING
from datetime import datetime
from uuid import UUID, uuid4

from clinic.core.utils import utcnow
from clinic.db.types import UTCDateTime

if TYPE_CHECKING:
    from .user import User

class Doctor(SQLModel, table=True):
    __tablename__ = "doctors"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="users.id", unique=True)
    specialization: Optional[str] = None
    bio: Optional[str] = None
    is_active: bool = Field(default=True)
    # Touched by every booking; the write doubles as the per-doctor booking lock
    last_booked_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)

    user: "User" = Relationship(sa_relationship_kwargs={"lazy": "selectin"})
