from pydantic import BaseModel
from uuid import UUID
from datetime import datetime
from typing import Optional

class AdminStatsResponse(BaseModel):
    total_users: int
    active_doctors: int
    active_patients: int
    active_staff: int
    scheduled_services: int
    pending_requests: int
    completed_tests_this_month: int

class ActivityItem(BaseModel):
    type: str
    message: str
    timestamp: datetime
    entity_id: Optional[UUID] = None
