from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.api.deps import get_current_doctor, require_roles
from clinic.api.v1.services import construct_service_response
from clinic.db.models import Doctor, Note, User
from clinic.db.models.enums import Role
from clinic.db.session import get_session
from clinic.schemas.note import NoteCreate, NoteDetailResponse, NoteUpdate
from clinic.schemas.service import ServiceResponse
from clinic.schemas.user import DoctorSummary, PatientSummary
from clinic.services.note_service import NoteService

router = APIRouter()

# Clinical notes stay with clinicians
clinicians = require_roles(Role.ADMIN, Role.DOCTOR)


async def get_note_service(session: AsyncSession = Depends(get_session)) -> NoteService:
    return NoteService(session)


def construct_note_response(note: Note) -> NoteDetailResponse:
    patient = None
    if note.patient is not None:
        patient = PatientSummary(
            id=note.patient.id,
            first_name=note.patient.user.first_name,
            last_name=note.patient.user.last_name,
            email=note.patient.user.email,
        )
    return NoteDetailResponse(
        id=note.id,
        service_id=note.service_id,
        participant_id=note.participant_id,
        service_type=note.service.service_type if note.service else None,
        service_start_time=note.service.start_time if note.service else None,
        content=note.content,
        created_at=note.created_at,
        updated_at=note.updated_at,
        doctor=DoctorSummary(
            id=note.doctor.id,
            first_name=note.doctor.user.first_name,
            last_name=note.doctor.user.last_name,
            specialization=note.doctor.specialization,
        ),
        patient=patient,
    )


@router.get("/services", response_model=List[ServiceResponse])
async def services_for_notes(
    doctor_id: Optional[UUID] = None,
    user: User = Depends(clinicians),
    service: NoteService = Depends(get_note_service),
):
    services = await service.list_services_for_notes(doctor_id=doctor_id)
    return [construct_service_response(s) for s in services]


@router.get("/patient/{patient_id}", response_model=List[NoteDetailResponse])
async def patient_notes(
    patient_id: UUID,
    user: User = Depends(clinicians),
    service: NoteService = Depends(get_note_service),
):
    return [construct_note_response(n) for n in await service.list_for_patient(patient_id)]


@router.get("/doctor", response_model=List[NoteDetailResponse])
async def doctor_notes(
    doctor: Doctor = Depends(get_current_doctor),
    service: NoteService = Depends(get_note_service),
):
    return [construct_note_response(n) for n in await service.list_for_doctor(doctor.id)]


@router.get("/{note_id}", response_model=NoteDetailResponse)
async def read_note(
    note_id: UUID,
    user: User = Depends(clinicians),
    service: NoteService = Depends(get_note_service),
):
    return construct_note_response(await service.get_note(note_id))


@router.post("", response_model=NoteDetailResponse, status_code=201)
async def create_note(
    request: NoteCreate,
    doctor: Doctor = Depends(get_current_doctor),
    service: NoteService = Depends(get_note_service),
):
    return construct_note_response(await service.create_note(request, doctor))


@router.put("/{note_id}", response_model=NoteDetailResponse)
async def update_note(
    note_id: UUID,
    request: NoteUpdate,
    doctor: Doctor = Depends(get_current_doctor),
    service: NoteService = Depends(get_note_service),
):
    return construct_note_response(await service.update_note(note_id, request, doctor))


@router.delete("/{note_id}", status_code=204)
async def delete_note(
    note_id: UUID,
    doctor: Doctor = Depends(get_current_doctor),
    service: NoteService = Depends(get_note_service),
):
    await service.delete_note(note_id, doctor)
