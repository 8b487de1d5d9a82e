from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.api.deps import STAFF_ROLES, get_current_user, get_optional_patient, require_roles
from clinic.core.exceptions import AuthorizationError
from clinic.db.models import ServiceRequest, User
from clinic.db.models.enums import RequestStatus, Role
from clinic.db.session import get_session
from clinic.schemas.service_request import (
    ServiceRequestCreate,
    ServiceRequestReject,
    ServiceRequestResponse,
    ServiceRequestScheduled,
)
from clinic.schemas.user import PatientSummary
from clinic.services.service_request_service import ServiceRequestService

router = APIRouter()

staff_only = require_roles(*STAFF_ROLES)


async def get_request_service(session: AsyncSession = Depends(get_session)) -> ServiceRequestService:
    return ServiceRequestService(session)


def construct_request_response(request: ServiceRequest) -> ServiceRequestResponse:
    patient_user = request.patient.user
    return ServiceRequestResponse(
        id=request.id,
        patient_id=request.patient_id,
        service_type_id=request.service_type_id,
        service_type_name=request.service_type.name if request.service_type else None,
        preferred_doctor_id=request.preferred_doctor_id,
        preferred_date_1=request.preferred_date_1,
        preferred_date_2=request.preferred_date_2,
        preferred_date_3=request.preferred_date_3,
        preferred_time=request.preferred_time,
        reason=request.reason,
        urgent=request.urgent,
        additional_notes=request.additional_notes,
        rejection_reason=request.rejection_reason,
        status=request.status,
        service_id=request.service_id,
        created_at=request.created_at,
        updated_at=request.updated_at,
        patient=PatientSummary(
            id=request.patient.id,
            first_name=patient_user.first_name,
            last_name=patient_user.last_name,
            email=patient_user.email,
        ),
    )


@router.post("", response_model=ServiceRequestResponse, status_code=201)
async def create_request(
    request: ServiceRequestCreate,
    user: User = Depends(require_roles(Role.PATIENT, *STAFF_ROLES)),
    service: ServiceRequestService = Depends(get_request_service),
):
    created = await service.create_request(request, user)
    return construct_request_response(created)


@router.get("", response_model=List[ServiceRequestResponse])
async def list_requests(
    status: Optional[RequestStatus] = None,
    user: User = Depends(staff_only),
    service: ServiceRequestService = Depends(get_request_service),
):
    requests = await service.list_requests(status=status)
    return [construct_request_response(r) for r in requests]


@router.get("/patient/{patient_id}", response_model=List[ServiceRequestResponse])
async def list_patient_requests(
    patient_id: UUID,
    user: User = Depends(get_current_user),
    patient=Depends(get_optional_patient),
    service: ServiceRequestService = Depends(get_request_service),
):
    if user.role not in STAFF_ROLES and (patient is None or patient.id != patient_id):
        raise AuthorizationError("You can only view your own requests")
    requests = await service.list_requests(patient_id=patient_id)
    return [construct_request_response(r) for r in requests]


@router.get("/{request_id}", response_model=ServiceRequestResponse)
async def read_request(
    request_id: UUID,
    user: User = Depends(get_current_user),
    patient=Depends(get_optional_patient),
    service: ServiceRequestService = Depends(get_request_service),
):
    found = await service.get_request(request_id)
    if user.role not in STAFF_ROLES and (patient is None or found.patient_id != patient.id):
        raise AuthorizationError("You can only view your own requests")
    return construct_request_response(found)


@router.patch("/{request_id}/approve", response_model=ServiceRequestResponse)
async def approve_request(
    request_id: UUID,
    user: User = Depends(staff_only),
    service: ServiceRequestService = Depends(get_request_service),
):
    return construct_request_response(await service.approve_request(request_id, actor=user))


@router.patch("/{request_id}/reject", response_model=ServiceRequestResponse)
async def reject_request(
    request_id: UUID,
    request: Optional[ServiceRequestReject] = None,
    user: User = Depends(staff_only),
    service: ServiceRequestService = Depends(get_request_service),
):
    reason = request.rejection_reason if request else None
    return construct_request_response(await service.reject_request(request_id, reason, actor=user))


@router.patch("/{request_id}/scheduled", response_model=ServiceRequestResponse)
async def mark_request_scheduled(
    request_id: UUID,
    request: ServiceRequestScheduled,
    user: User = Depends(staff_only),
    service: ServiceRequestService = Depends(get_request_service),
):
    return construct_request_response(
        await service.mark_scheduled(request_id, request.service_id, actor=user)
    )
