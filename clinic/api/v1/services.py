from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.api.deps import STAFF_ROLES, get_current_user, get_optional_patient, require_roles
from clinic.core.exceptions import AuthorizationError
from clinic.db.models import Service, User
from clinic.db.models.enums import ServiceStatus
from clinic.db.session import get_session
from clinic.schemas.service import (
    AttendanceUpdate,
    CalendarEvent,
    NoteResponse,
    ParticipantResponse,
    ServiceCancel,
    ServiceCreate,
    ServiceDetailResponse,
    ServiceResponse,
)
from clinic.schemas.user import DoctorSummary, PatientSummary
from clinic.services.scheduling_service import SchedulingService

router = APIRouter()

staff_only = require_roles(*STAFF_ROLES)


async def get_scheduling_service(session: AsyncSession = Depends(get_session)) -> SchedulingService:
    return SchedulingService(session)


def construct_service_response(service: Service) -> ServiceResponse:
    doctor_user = service.doctor.user
    return ServiceResponse(
        id=service.id,
        service_type=service.service_type,
        doctor_id=service.doctor_id,
        start_time=service.start_time,
        end_time=service.end_time,
        status=service.status,
        cancel_reason=service.cancel_reason,
        created_at=service.created_at,
        doctor=DoctorSummary(
            id=service.doctor.id,
            first_name=doctor_user.first_name,
            last_name=doctor_user.last_name,
            specialization=service.doctor.specialization,
        ),
        participants=[
            ParticipantResponse(
                id=participant.id,
                patient_id=participant.patient_id,
                attendance_status=participant.attendance_status,
                patient=PatientSummary(
                    id=participant.patient.id,
                    first_name=participant.patient.user.first_name,
                    last_name=participant.patient.user.last_name,
                    email=participant.patient.user.email,
                ),
            )
            for participant in service.participants
        ],
    )


@router.post("", response_model=ServiceResponse, status_code=201)
async def create_service(
    request: ServiceCreate,
    user: User = Depends(staff_only),
    service: SchedulingService = Depends(get_scheduling_service),
):
    created = await service.create_service(request, actor=user)
    return construct_service_response(created)


@router.get("", response_model=List[ServiceResponse])
async def list_services(
    doctor_id: Optional[UUID] = None,
    patient_id: Optional[UUID] = None,
    status: Optional[ServiceStatus] = None,
    user: User = Depends(staff_only),
    service: SchedulingService = Depends(get_scheduling_service),
):
    services = await service.list_services(doctor_id=doctor_id, patient_id=patient_id, status=status)
    return [construct_service_response(s) for s in services]


@router.get("/calendar", response_model=List[CalendarEvent])
async def calendar_events(
    start: datetime,
    end: datetime,
    doctor_id: Optional[UUID] = None,
    status: Optional[ServiceStatus] = None,
    patient: Optional[str] = Query(default=None, description="Patient name fragment"),
    user: User = Depends(staff_only),
    service: SchedulingService = Depends(get_scheduling_service),
):
    return await service.calendar_events(
        start, end, doctor_id=doctor_id, status=status, patient_name=patient
    )


@router.get("/by-date", response_model=List[ServiceResponse])
async def services_by_date(
    date: date,
    user: User = Depends(staff_only),
    service: SchedulingService = Depends(get_scheduling_service),
):
    services = await service.list_for_day_range(date, date)
    return [construct_service_response(s) for s in services]


@router.get("/by-range", response_model=List[ServiceResponse])
async def services_by_range(
    start_date: date,
    end_date: date,
    user: User = Depends(staff_only),
    service: SchedulingService = Depends(get_scheduling_service),
):
    services = await service.list_for_day_range(start_date, end_date)
    return [construct_service_response(s) for s in services]


@router.get("/{service_id}", response_model=ServiceDetailResponse)
async def read_service(
    service_id: UUID,
    user: User = Depends(get_current_user),
    patient=Depends(get_optional_patient),
    service: SchedulingService = Depends(get_scheduling_service),
):
    found, notes = await service.get_service_with_notes(service_id)
    if user.role not in STAFF_ROLES:
        if patient is None or all(p.patient_id != patient.id for p in found.participants):
            raise AuthorizationError("You can only view services you take part in")
        # Clinical notes stay with staff
        notes = []
    return ServiceDetailResponse(
        **construct_service_response(found).model_dump(),
        notes=[NoteResponse.model_validate(note) for note in notes],
    )


@router.patch("/{service_id}/cancel", response_model=ServiceResponse)
async def cancel_service(
    service_id: UUID,
    request: Optional[ServiceCancel] = None,
    user: User = Depends(staff_only),
    service: SchedulingService = Depends(get_scheduling_service),
):
    reason = request.cancel_reason if request else None
    cancelled = await service.cancel_service(service_id, reason, actor=user)
    return construct_service_response(cancelled)


@router.patch("/{service_id}/complete", response_model=ServiceResponse)
async def complete_service(
    service_id: UUID,
    user: User = Depends(staff_only),
    service: SchedulingService = Depends(get_scheduling_service),
):
    completed = await service.complete_service(service_id, actor=user)
    return construct_service_response(completed)


@router.patch("/{service_id}/participants/{participant_id}/attendance", response_model=ServiceResponse)
async def update_attendance(
    service_id: UUID,
    participant_id: UUID,
    request: AttendanceUpdate,
    user: User = Depends(staff_only),
    service: SchedulingService = Depends(get_scheduling_service),
):
    updated = await service.mark_attendance(service_id, participant_id, request.attendance_status, actor=user)
    return construct_service_response(updated)
