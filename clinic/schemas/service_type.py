from pydantic import BaseModel, Field
from typing import Optional
from uuid import UUID

class ServiceTypeCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    duration_minutes: int = Field(default=60, gt=0)
    active: bool = True

    class Config:
        extra = "forbid"

class ServiceTypeResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    duration_minutes: int
    active: bool

    class Config:
        from_attributes = True
