"""
Read-only figures for the admin and doctor dashboards.

Admin activity is read from the audit trail; a doctor's activity is built from
their own services and the tests of patients they have seen.
"""
from typing import List

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from clinic.core.utils import full_name, utcnow
from clinic.db.models import AuditLog, Doctor, Patient, Service, ServiceRequest, TestInstance, User
from clinic.db.models.enums import RequestStatus, Role, ServiceStatus
from clinic.schemas.dashboard import ActivityItem, AdminStatsResponse
from clinic.services.test_service import TestService


class DashboardService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _count(self, stmt) -> int:
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def admin_stats(self) -> AdminStatsResponse:
        now = utcnow()
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        return AdminStatsResponse(
            total_users=await self._count(select(func.count()).select_from(User)),
            active_doctors=await self._count(
                select(func.count()).select_from(Doctor).join(User, User.id == Doctor.user_id)
                .where(Doctor.is_active == True, User.is_active == True)  # noqa: E712
            ),
            active_patients=await self._count(
                select(func.count()).select_from(Patient).join(User, User.id == Patient.user_id)
                .where(User.is_active == True)  # noqa: E712
            ),
            active_staff=await self._count(
                select(func.count()).select_from(User)
                .where(User.role != Role.PATIENT, User.is_active == True)  # noqa: E712
            ),
            scheduled_services=await self._count(
                select(func.count()).select_from(Service).where(Service.status == ServiceStatus.SCHEDULED)
            ),
            pending_requests=await self._count(
                select(func.count()).select_from(ServiceRequest)
                .where(ServiceRequest.status == RequestStatus.PENDING)
            ),
            completed_tests_this_month=await self._count(
                select(func.count()).select_from(TestInstance)
                .where(TestInstance.test_stop_date >= month_start)
            ),
        )

    async def recent_activity(self, limit: int = 10) -> List[ActivityItem]:
        stmt = select(AuditLog).order_by(AuditLog.created_at.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return [
            ActivityItem(
                type=entry.entity,
                message=entry.action,
                timestamp=entry.created_at,
                entity_id=entry.entity_id,
            )
            for entry in result.scalars().all()
        ]

    async def doctor_activity(self, doctor: Doctor, limit: int = 10) -> List[ActivityItem]:
        stmt = (
            select(Service)
            .where(Service.doctor_id == doctor.id)
            .order_by(Service.start_time.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        activities = []
        for service in result.scalars().all():
            names = ", ".join(
                full_name(p.patient.user.first_name, p.patient.user.last_name) for p in service.participants
            )
            activities.append(ActivityItem(
                type="service",
                message=f"{service.status.value} {service.service_type.value} with {names}",
                timestamp=service.start_time,
                entity_id=service.id,
            ))

        for instance in (await TestService(self.session).list_for_doctor(doctor.id))[:limit]:
            moment = instance.test_stop_date or instance.test_start_date
            if moment is None:
                continue
            state = "completed" if instance.is_completed else "assigned"
            user = instance.patient.user
            activities.append(ActivityItem(
                type="test",
                message=f"Test {state}: {instance.template_version.template.name} "
                        f"for {full_name(user.first_name, user.last_name)}",
                timestamp=moment,
                entity_id=instance.id,
            ))

        activities.sort(key=lambda item: item.timestamp, reverse=True)
        return activities[:limit]
