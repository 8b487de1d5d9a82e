from sqlmodel import SQLModel, Field
from typing import Optional
from uuid import UUID, uuid4

class ServiceTypeDefinition(SQLModel, table=True):
    """Bookable kind of service offered to patients in service requests."""
    __tablename__ = "service_types"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(unique=True, index=True)
    description: Optional[str] = None
    duration_minutes: int = Field(default=60)
    active: bool = Field(default=True)
