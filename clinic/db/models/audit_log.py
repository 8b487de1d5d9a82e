from sqlmodel import SQLModel, Field
from sqlalchemy import Column
from typing import Optional
from datetime import datetime
from uuid import UUID, uuid4

from clinic.core.utils import utcnow
from clinic.db.types import JSONType, UTCDateTime

class AuditLog(SQLModel, table=True):
    __tablename__ = "audit_logs"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    actor_id: Optional[UUID] = None
    action: str
    entity: str
    entity_id: Optional[UUID] = None
    payload: Optional[dict] = Field(default=None, sa_column=Column(JSONType))
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
