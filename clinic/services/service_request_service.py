from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from clinic.core.exceptions import AuthorizationError, InvalidStateError, NotFoundError, ValidationError
from clinic.core.logger import logger
from clinic.core.utils import to_utc, utcnow
from clinic.db.models import Doctor, Patient, Service, ServiceParticipant, ServiceRequest, ServiceTypeDefinition, User
from clinic.db.models.enums import REQUEST_TRANSITIONS, RequestStatus, Role
from clinic.schemas.service_request import ServiceRequestCreate
from clinic.services import audit
from clinic.services.state import apply_transition


class ServiceRequestService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_patient_for_user(self, user: User) -> Optional[Patient]:
        stmt = select(Patient).where(Patient.user_id == user.id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def create_request(self, data: ServiceRequestCreate, user: User) -> ServiceRequest:
        # 1. Resolve the patient the request is for
        if user.role == Role.PATIENT:
            own = await self.get_patient_for_user(user)
            if not own:
                raise NotFoundError("Patient profile not found")
            if data.patient_id is not None and data.patient_id != own.id:
                raise AuthorizationError("Patients can only create requests for themselves")
            patient_id = own.id
        else:
            if data.patient_id is None:
                raise ValidationError("patient_id is required")
            if not await self.session.get(Patient, data.patient_id):
                raise NotFoundError("Patient not found")
            patient_id = data.patient_id

        # 2. Validate references
        service_type = await self.session.get(ServiceTypeDefinition, data.service_type_id)
        if not service_type or not service_type.active:
            raise NotFoundError("Service type not found")
        if data.preferred_doctor_id is not None:
            doctor = await self.session.get(Doctor, data.preferred_doctor_id)
            if not doctor or not doctor.is_active:
                raise NotFoundError("Preferred doctor not found")

        reason = data.reason.strip()
        if len(reason) < 10:
            raise ValidationError("reason must be at least 10 characters long")

        request = ServiceRequest(
            patient_id=patient_id,
            service_type_id=service_type.id,
            preferred_doctor_id=data.preferred_doctor_id,
            preferred_date_1=to_utc(data.preferred_date_1),
            preferred_date_2=to_utc(data.preferred_date_2) if data.preferred_date_2 else None,
            preferred_date_3=to_utc(data.preferred_date_3) if data.preferred_date_3 else None,
            preferred_time=data.preferred_time,
            reason=reason,
            urgent=data.urgent,
            additional_notes=data.additional_notes,
            status=RequestStatus.PENDING,
        )
        self.session.add(request)
        audit.record(self.session, "service_request.created", "service_request", request.id, actor_id=user.id)
        await self.session.commit()
        return await self.get_request(request.id)

    async def get_request(self, request_id: UUID) -> ServiceRequest:
        stmt = (
            select(ServiceRequest)
            .where(ServiceRequest.id == request_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        request = result.scalars().first()
        if not request:
            raise NotFoundError("Service request not found")
        return request

    async def list_requests(
        self, status: Optional[RequestStatus] = None, patient_id: Optional[UUID] = None
    ) -> List[ServiceRequest]:
        stmt = select(ServiceRequest)
        if status is not None:
            stmt = stmt.where(ServiceRequest.status == status)
        if patient_id is not None:
            stmt = stmt.where(ServiceRequest.patient_id == patient_id)
        # Urgent first, then newest first
        stmt = stmt.order_by(ServiceRequest.urgent.desc(), ServiceRequest.created_at.desc())
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def _transition(
        self, request_id: UUID, target: RequestStatus, verb: str, actor: Optional[User], **values
    ) -> ServiceRequest:
        moved = await apply_transition(
            self.session, ServiceRequest, request_id, REQUEST_TRANSITIONS, target,
            updated_at=utcnow(), **values,
        )
        if not moved:
            await self.session.rollback()
            current = await self.session.get(ServiceRequest, request_id, populate_existing=True)
            if current is None:
                raise NotFoundError("Service request not found")
            logger.warning(f"Refused to {verb} service request {request_id} in status {current.status.value}")
            raise InvalidStateError(f"Cannot {verb} a request that is {current.status.value}")

        audit.record(
            self.session, f"service_request.{target.value}", "service_request", request_id,
            actor_id=actor.id if actor else None,
            payload={key: str(value) for key, value in values.items()} or None,
        )
        await self.session.commit()
        return await self.get_request(request_id)

    async def approve_request(self, request_id: UUID, actor: Optional[User] = None) -> ServiceRequest:
        return await self._transition(request_id, RequestStatus.APPROVED, "approve", actor)

    async def reject_request(
        self, request_id: UUID, reason: Optional[str], actor: Optional[User] = None
    ) -> ServiceRequest:
        reason = (reason or "").strip()
        if not reason:
            # A request that can no longer be rejected reports its state first
            current = await self.get_request(request_id)
            if current.status != RequestStatus.PENDING:
                raise InvalidStateError(f"Cannot reject a request that is {current.status.value}")
            raise ValidationError("A rejection reason is required")
        return await self._transition(
            request_id, RequestStatus.REJECTED, "reject", actor, rejection_reason=reason
        )

    async def mark_scheduled(
        self, request_id: UUID, service_id: UUID, actor: Optional[User] = None
    ) -> ServiceRequest:
        request = await self.get_request(request_id)
        service = await self.session.get(Service, service_id)
        if not service:
            raise ValidationError("service_id does not reference an existing service")

        stmt = select(ServiceParticipant.id).where(
            ServiceParticipant.service_id == service_id,
            ServiceParticipant.patient_id == request.patient_id,
        )
        result = await self.session.execute(stmt)
        if result.scalars().first() is None:
            raise ValidationError("The requesting patient is not a participant of this service")

        return await self._transition(
            request_id, RequestStatus.SCHEDULED, "schedule", actor, service_id=service_id
        )
