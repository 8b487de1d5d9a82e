from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.api.deps import get_current_doctor, require_roles
from clinic.db.models import Doctor, User
from clinic.db.models.enums import Role
from clinic.db.session import get_session
from clinic.schemas.dashboard import ActivityItem, AdminStatsResponse
from clinic.services.dashboard_service import DashboardService

router = APIRouter()

admin_only = require_roles(Role.ADMIN)


async def get_dashboard_service(session: AsyncSession = Depends(get_session)) -> DashboardService:
    return DashboardService(session)


@router.get("/admin/stats", response_model=AdminStatsResponse)
async def admin_stats(
    user: User = Depends(admin_only),
    service: DashboardService = Depends(get_dashboard_service),
):
    return await service.admin_stats()


@router.get("/recent-activity", response_model=List[ActivityItem])
async def recent_activity(
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(admin_only),
    service: DashboardService = Depends(get_dashboard_service),
):
    return await service.recent_activity(limit)


@router.get("/doctor/recent-activity", response_model=List[ActivityItem])
async def doctor_recent_activity(
    limit: int = Query(10, ge=1, le=100),
    doctor: Doctor = Depends(get_current_doctor),
    service: DashboardService = Depends(get_dashboard_service),
):
    return await service.doctor_activity(doctor, limit)
