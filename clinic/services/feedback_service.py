from typing import List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from clinic.core.exceptions import AuthorizationError, InvalidStateError, NotFoundError, ValidationError
from clinic.db.models import Feedback, Patient, Service, ServiceParticipant, User
from clinic.db.models.enums import Role, ServiceStatus
from clinic.schemas.feedback import FeedbackCreate
from clinic.services import audit


class FeedbackService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def submit_feedback(self, data: FeedbackCreate, user: User) -> Feedback:
        service = await self.session.get(Service, data.service_id)
        if not service:
            raise NotFoundError("Service not found")
        participant = await self.session.get(ServiceParticipant, data.participant_id)
        if not participant or participant.service_id != service.id:
            raise ValidationError("participant_id does not belong to the given service")

        if user.role == Role.PATIENT:
            stmt = select(Patient.id).where(Patient.user_id == user.id)
            result = await self.session.execute(stmt)
            if result.scalars().first() != participant.patient_id:
                raise AuthorizationError("You can only give feedback on your own visits")

        if service.status != ServiceStatus.COMPLETED:
            raise InvalidStateError("Feedback can only be given for a completed service")

        feedback = Feedback(**data.model_dump())
        self.session.add(feedback)
        audit.record(self.session, "feedback.submitted", "feedback", feedback.id, actor_id=user.id)
        await self.session.commit()
        await self.session.refresh(feedback)
        return feedback

    async def list_for_service(self, service_id: UUID) -> List[Feedback]:
        if not await self.session.get(Service, service_id):
            raise NotFoundError("Service not found")
        stmt = (
            select(Feedback)
            .where(Feedback.service_id == service_id)
            .order_by(Feedback.submission_date.desc())
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()
