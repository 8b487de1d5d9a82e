from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.api.deps import STAFF_ROLES, get_current_patient, get_current_user, require_roles
from clinic.db.models import Patient, User
from clinic.db.session import get_session
from clinic.schemas.initial_form import AssessmentForm, AssessmentResult, AssessmentStatus, AssessmentSubmit
from clinic.services import scoring
from clinic.services.initial_form_service import InitialFormService

router = APIRouter()


async def get_initial_form_service(session: AsyncSession = Depends(get_session)) -> InitialFormService:
    return InitialFormService(session)


@router.get("/form", response_model=AssessmentForm)
async def read_form(user: User = Depends(get_current_user)):
    return scoring.build_form()


@router.post("/submit", response_model=AssessmentResult)
async def submit_form(
    request: AssessmentSubmit,
    patient: Patient = Depends(get_current_patient),
    service: InitialFormService = Depends(get_initial_form_service),
):
    return await service.submit(patient, request.responses)


@router.get("/results", response_model=AssessmentResult)
async def my_results(
    patient: Patient = Depends(get_current_patient),
    service: InitialFormService = Depends(get_initial_form_service),
):
    return await service.get_result(patient.id)


@router.get("/status", response_model=AssessmentStatus)
async def my_status(
    patient: Patient = Depends(get_current_patient),
    service: InitialFormService = Depends(get_initial_form_service),
):
    return await service.get_status(patient.id)


@router.get("/results/{patient_id}", response_model=AssessmentResult)
async def patient_results(
    patient_id: UUID,
    user: User = Depends(require_roles(*STAFF_ROLES)),
    service: InitialFormService = Depends(get_initial_form_service),
):
    return await service.get_result(patient_id)
