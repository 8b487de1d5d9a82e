from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from clinic.api.deps import (
    STAFF_ROLES,
    get_current_patient,
    get_current_user,
    get_optional_patient,
    require_roles,
)
from clinic.core.exceptions import AuthorizationError
from clinic.db.models import Doctor, Patient, TestInstance, User
from clinic.db.models.enums import Role
from clinic.db.session import get_session
from clinic.schemas.test import (
    AssignTestRequest,
    SubmitTestRequest,
    TestInstanceResponse,
    TestTemplateCreate,
    TestTemplateResponse,
    TestTemplateVersionCreate,
    TestTemplateVersionResponse,
)
from clinic.services.test_service import TestService

router = APIRouter()

clinicians = require_roles(Role.ADMIN, Role.DOCTOR)


async def get_test_service(session: AsyncSession = Depends(get_session)) -> TestService:
    return TestService(session)


def construct_instance_response(instance: TestInstance) -> TestInstanceResponse:
    version = instance.template_version
    return TestInstanceResponse(
        id=instance.id,
        patient_id=instance.patient_id,
        test_template_version_id=version.id,
        test_template_id=version.test_template_id,
        template_name=version.template.name,
        version=version.version,
        status="Completed" if instance.is_completed else "Pending",
        test_start_date=instance.test_start_date,
        test_stop_date=instance.test_stop_date,
        patient_response=instance.patient_response,
        questions=version.questions,
    )


@router.post("/templates", response_model=TestTemplateResponse, status_code=201)
async def create_template(
    request: TestTemplateCreate,
    user: User = Depends(clinicians),
    service: TestService = Depends(get_test_service),
):
    template = await service.create_template(request, actor=user)
    latest = await service.get_latest_version(template.id)
    return TestTemplateResponse(
        id=template.id,
        name=template.name,
        description=template.description,
        is_active=template.is_active,
        latest_version=TestTemplateVersionResponse.model_validate(latest),
    )


@router.get("/templates", response_model=List[TestTemplateResponse])
async def list_templates(
    user: User = Depends(require_roles(*STAFF_ROLES)),
    service: TestService = Depends(get_test_service),
):
    templates = await service.list_templates()
    responses = []
    for template in templates:
        latest = await service.get_latest_version(template.id)
        responses.append(TestTemplateResponse(
            id=template.id,
            name=template.name,
            description=template.description,
            is_active=template.is_active,
            latest_version=TestTemplateVersionResponse.model_validate(latest) if latest else None,
        ))
    return responses


@router.post("/templates/{template_id}/versions", response_model=TestTemplateVersionResponse, status_code=201)
async def add_template_version(
    template_id: UUID,
    request: TestTemplateVersionCreate,
    user: User = Depends(clinicians),
    service: TestService = Depends(get_test_service),
):
    return await service.add_version(template_id, request.questions, actor=user)


@router.post("/assign", response_model=TestInstanceResponse, status_code=201)
async def assign_test(
    request: AssignTestRequest,
    user: User = Depends(clinicians),
    service: TestService = Depends(get_test_service),
):
    instance = await service.assign_test(request, actor=user)
    return construct_instance_response(instance)


@router.get("", response_model=List[TestInstanceResponse])
async def list_tests(
    patient_id: Optional[UUID] = None,
    user: User = Depends(require_roles(*STAFF_ROLES)),
    service: TestService = Depends(get_test_service),
):
    instances = await service.list_instances(patient_id=patient_id)
    return [construct_instance_response(i) for i in instances]


@router.get("/completed", response_model=List[TestInstanceResponse])
async def list_completed_tests(
    user: User = Depends(clinicians),
    service: TestService = Depends(get_test_service),
):
    instances = await service.list_instances(completed=True)
    return [construct_instance_response(i) for i in instances]


@router.get("/doctor/{doctor_id}", response_model=List[TestInstanceResponse])
async def list_doctor_tests(
    doctor_id: UUID,
    user: User = Depends(clinicians),
    service: TestService = Depends(get_test_service),
):
    if user.role == Role.DOCTOR:
        stmt = select(Doctor.id).where(Doctor.user_id == user.id)
        own_id = (await service.session.execute(stmt)).scalars().first()
        if own_id != doctor_id:
            raise AuthorizationError("Doctors can only list tests of their own patients")
    instances = await service.list_for_doctor(doctor_id)
    return [construct_instance_response(i) for i in instances]


@router.get("/patient/my-tests", response_model=List[TestInstanceResponse])
async def my_tests(
    patient: Patient = Depends(get_current_patient),
    service: TestService = Depends(get_test_service),
):
    instances = await service.list_instances(patient_id=patient.id)
    return [construct_instance_response(i) for i in instances]


@router.get("/{test_id}", response_model=TestInstanceResponse)
async def read_test(
    test_id: UUID,
    user: User = Depends(get_current_user),
    patient=Depends(get_optional_patient),
    service: TestService = Depends(get_test_service),
):
    instance = await service.get_instance_for(test_id, user, patient)
    return construct_instance_response(instance)


@router.put("/{test_id}/submit", response_model=TestInstanceResponse)
async def submit_test(
    test_id: UUID,
    request: SubmitTestRequest,
    patient: Patient = Depends(get_current_patient),
    service: TestService = Depends(get_test_service),
):
    instance = await service.submit_answers(test_id, request.patient_response, patient)
    return construct_instance_response(instance)
