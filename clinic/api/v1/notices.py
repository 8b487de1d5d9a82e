from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.api.deps import (
    STAFF_ROLES,
    get_current_doctor,
    get_current_patient,
    get_current_user,
    get_optional_patient,
    require_roles,
)
from clinic.api.v1.services import construct_service_response
from clinic.core.exceptions import AuthorizationError
from clinic.core.utils import utcnow
from clinic.db.models import Doctor, Notice, Patient, User
from clinic.db.session import get_session
from clinic.schemas.notice import NoticeCreate, NoticeNumberResponse, NoticeResponse, NoticeUpdate
from clinic.schemas.service import ServiceResponse
from clinic.schemas.user import DoctorSummary, PatientSummary
from clinic.services.notice_service import NoticeService

router = APIRouter()

staff_only = require_roles(*STAFF_ROLES)


async def get_notice_service(session: AsyncSession = Depends(get_session)) -> NoticeService:
    return NoticeService(session)


def construct_notice_response(notice: Notice) -> NoticeResponse:
    service = notice.service
    patient = notice.participant.patient
    return NoticeResponse(
        id=notice.id,
        service_id=notice.service_id,
        participant_id=notice.participant_id,
        issue_date=notice.issue_date,
        unique_notice_number=notice.unique_notice_number,
        expiry_date=notice.expiry_date,
        reason_for_issuance=notice.reason_for_issuance,
        fitness_status=notice.fitness_status,
        recommendations=notice.recommendations,
        attachment_path=notice.attachment_path,
        is_valid=notice.is_valid(utcnow()),
        service_type=service.service_type,
        service_start_time=service.start_time,
        doctor=DoctorSummary(
            id=service.doctor.id,
            first_name=service.doctor.user.first_name,
            last_name=service.doctor.user.last_name,
            specialization=service.doctor.specialization,
        ),
        patient=PatientSummary(
            id=patient.id,
            first_name=patient.user.first_name,
            last_name=patient.user.last_name,
            email=patient.user.email,
        ),
    )


@router.post("", response_model=NoticeResponse, status_code=201)
async def create_notice(
    request: NoticeCreate,
    user: User = Depends(staff_only),
    service: NoticeService = Depends(get_notice_service),
):
    notice = await service.create_notice(request, actor_id=user.id)
    return construct_notice_response(notice)


@router.get("", response_model=List[NoticeResponse])
async def list_notices(
    user: User = Depends(staff_only),
    service: NoticeService = Depends(get_notice_service),
):
    return [construct_notice_response(n) for n in await service.list_notices()]


@router.get("/generate-number", response_model=NoticeNumberResponse)
async def generate_notice_number(
    user: User = Depends(staff_only),
    service: NoticeService = Depends(get_notice_service),
):
    return NoticeNumberResponse(notice_number=await service.generate_number())


@router.get("/services", response_model=List[ServiceResponse])
async def eligible_services(
    doctor_id: Optional[UUID] = None,
    user: User = Depends(staff_only),
    service: NoticeService = Depends(get_notice_service),
):
    services = await service.list_eligible_services(doctor_id=doctor_id)
    return [construct_service_response(s) for s in services]


@router.get("/my", response_model=List[NoticeResponse])
async def my_notices(
    patient: Patient = Depends(get_current_patient),
    service: NoticeService = Depends(get_notice_service),
):
    return [construct_notice_response(n) for n in await service.list_notices(patient_id=patient.id)]


@router.get("/doctor", response_model=List[NoticeResponse])
async def doctor_notices(
    doctor: Doctor = Depends(get_current_doctor),
    service: NoticeService = Depends(get_notice_service),
):
    return [construct_notice_response(n) for n in await service.list_notices(doctor_id=doctor.id)]


@router.get("/patient/{patient_id}", response_model=List[NoticeResponse])
async def patient_notices(
    patient_id: UUID,
    user: User = Depends(get_current_user),
    patient=Depends(get_optional_patient),
    service: NoticeService = Depends(get_notice_service),
):
    if user.role not in STAFF_ROLES and (patient is None or patient.id != patient_id):
        raise AuthorizationError("You can only view your own notices")
    return [construct_notice_response(n) for n in await service.list_notices(patient_id=patient_id)]


@router.get("/{notice_id}", response_model=NoticeResponse)
async def read_notice(
    notice_id: UUID,
    user: User = Depends(get_current_user),
    patient=Depends(get_optional_patient),
    service: NoticeService = Depends(get_notice_service),
):
    notice = await service.get_notice(notice_id)
    if user.role not in STAFF_ROLES and (patient is None or notice.participant.patient_id != patient.id):
        raise AuthorizationError("You can only view your own notices")
    return construct_notice_response(notice)


@router.put("/{notice_id}", response_model=NoticeResponse)
async def update_notice(
    notice_id: UUID,
    request: NoticeUpdate,
    user: User = Depends(staff_only),
    service: NoticeService = Depends(get_notice_service),
):
    notice = await service.update_notice(notice_id, request, actor_id=user.id)
    return construct_notice_response(notice)


@router.delete("/{notice_id}", status_code=204)
async def delete_notice(
    notice_id: UUID,
    user: User = Depends(staff_only),
    service: NoticeService = Depends(get_notice_service),
):
    await service.delete_notice(notice_id, actor_id=user.id)
