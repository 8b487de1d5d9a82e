from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from clinic.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from clinic.core.utils import utcnow
from clinic.db.models import Doctor, Note, Patient, Service, ServiceParticipant
from clinic.db.models.enums import ServiceStatus
from clinic.schemas.note import NoteCreate, NoteUpdate
from clinic.services import audit


class NoteService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_participant(self, service_id: UUID, patient_id: UUID) -> Optional[ServiceParticipant]:
        stmt = select(ServiceParticipant).where(
            ServiceParticipant.service_id == service_id,
            ServiceParticipant.patient_id == patient_id,
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def create_note(self, data: NoteCreate, doctor: Doctor) -> Note:
        content = data.content.strip()
        if not content:
            raise ValidationError("content cannot be empty")
        if not await self.session.get(Patient, data.patient_id):
            raise NotFoundError("Patient not found")

        participant = None
        if data.service_id is not None:
            if not await self.session.get(Service, data.service_id):
                raise NotFoundError("Service not found")
            participant = await self.find_participant(data.service_id, data.patient_id)
            if participant is None:
                raise ValidationError("The patient is not a participant of this service")

        note = Note(
            doctor_id=doctor.id,
            patient_id=data.patient_id,
            service_id=data.service_id,
            participant_id=participant.id if participant else None,
            content=content,
        )
        self.session.add(note)
        audit.record(self.session, "note.created", "note", note.id, actor_id=doctor.user_id,
                     payload={"patient_id": str(data.patient_id)})
        await self.session.commit()
        return await self.get_note(note.id)

    async def get_note(self, note_id: UUID) -> Note:
        stmt = select(Note).where(Note.id == note_id).execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        note = result.scalars().first()
        if not note:
            raise NotFoundError("Note not found")
        return note

    async def get_own_note(self, note_id: UUID, doctor: Doctor) -> Note:
        note = await self.get_note(note_id)
        if note.doctor_id != doctor.id:
            raise AuthorizationError("You can only change notes you wrote")
        return note

    async def update_note(self, note_id: UUID, data: NoteUpdate, doctor: Doctor) -> Note:
        note = await self.get_own_note(note_id, doctor)
        content = data.content.strip()
        if not content:
            raise ValidationError("content cannot be empty")
        note.content = content
        note.updated_at = utcnow()
        self.session.add(note)
        audit.record(self.session, "note.updated", "note", note.id, actor_id=doctor.user_id)
        await self.session.commit()
        return await self.get_note(note.id)

    async def delete_note(self, note_id: UUID, doctor: Doctor):
        note = await self.get_own_note(note_id, doctor)
        await self.session.delete(note)
        audit.record(self.session, "note.deleted", "note", note_id, actor_id=doctor.user_id)
        await self.session.commit()

    async def list_for_patient(self, patient_id: UUID) -> List[Note]:
        if not await self.session.get(Patient, patient_id):
            raise NotFoundError("Patient not found")
        stmt = select(Note).where(Note.patient_id == patient_id).order_by(Note.created_at.desc())
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def list_for_doctor(self, doctor_id: UUID) -> List[Note]:
        stmt = select(Note).where(Note.doctor_id == doctor_id).order_by(Note.created_at.desc())
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def list_services_for_notes(self, doctor_id: Optional[UUID] = None) -> List[Service]:
        """Scheduled and completed services that have at least one participant."""
        stmt = (
            select(Service)
            .where(
                Service.status.in_([ServiceStatus.SCHEDULED, ServiceStatus.COMPLETED]),
                Service.participants.any(),
            )
            .order_by(Service.start_time.desc())
        )
        if doctor_id is not None:
            stmt = stmt.where(Service.doctor_id == doctor_id)
        result = await self.session.execute(stmt)
        return result.scalars().all()
