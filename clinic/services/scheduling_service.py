from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from clinic.core.config import settings
from clinic.core.exceptions import (
    ClinicError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from clinic.core.logger import logger
from clinic.core.utils import start_of_day, to_utc, utcnow
from clinic.db.models import Doctor, Note, Patient, Service, ServiceParticipant, User
from clinic.db.models.enums import (
    SERVICE_TRANSITIONS,
    AttendanceStatus,
    ServiceStatus,
    ServiceType,
)
from clinic.schemas.service import CalendarEvent, ServiceCreate
from clinic.services import audit, calendar
from clinic.services.state import apply_transition


class SchedulingService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_active_doctor(self, doctor_id: UUID) -> Doctor:
        doctor = await self.session.get(Doctor, doctor_id)
        if not doctor or not doctor.is_active or not doctor.user.is_active:
            raise ValidationError("doctor_id does not reference an active doctor")
        return doctor

    @staticmethod
    def resolve_patient_ids(data: ServiceCreate) -> List[UUID]:
        if data.patient_id is not None and data.patient_ids is not None:
            raise ValidationError("Provide either patient_id or patient_ids, not both")
        if data.patient_ids is not None:
            patient_ids = list(data.patient_ids)
        elif data.patient_id is not None:
            patient_ids = [data.patient_id]
        else:
            patient_ids = []

        if not patient_ids:
            raise ValidationError("At least one patient is required")
        if len(set(patient_ids)) != len(patient_ids):
            raise ValidationError("A patient can only be added to a service once")
        if data.service_type == ServiceType.CONSULTATION and len(patient_ids) != 1:
            raise ValidationError("A consultation must have exactly one patient")
        return patient_ids

    async def ensure_patients_exist(self, patient_ids: List[UUID]):
        stmt = select(Patient.id).where(Patient.id.in_(patient_ids))
        result = await self.session.execute(stmt)
        found = set(result.scalars().all())
        missing = [str(patient_id) for patient_id in patient_ids if patient_id not in found]
        if missing:
            raise NotFoundError(f"Patient not found: {', '.join(missing)}")

    async def lock_doctor_schedule(self, doctor_id: UUID):
        """
        Write the doctor's row so concurrent bookings for the same doctor run one
        after another until this transaction ends.

        A row lock on PostgreSQL, the database write lock on SQLite. Either way
        the overlap check that follows sees every booking committed before it.
        """
        stmt = (
            update(Doctor)
            .where(Doctor.id == doctor_id)
            .values(last_booked_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            raise ValidationError("doctor_id does not reference an active doctor")

    async def ensure_doctor_is_free(self, doctor_id: UUID, start_time: datetime, end_time: datetime):
        stmt = select(Service.id).where(
            Service.doctor_id == doctor_id,
            Service.status == ServiceStatus.SCHEDULED,
            Service.start_time < end_time,
            Service.end_time > start_time,
        )
        result = await self.session.execute(stmt)
        if result.scalars().first() is not None:
            raise ConflictError("The doctor already has a scheduled service in this time slot")

    async def create_service(self, data: ServiceCreate, actor: Optional[User] = None) -> Service:
        # 1. Validate participants and time range
        patient_ids = self.resolve_patient_ids(data)
        start_time = to_utc(data.start_time)
        end_time = to_utc(data.end_time)
        if start_time >= end_time:
            raise ValidationError("start_time must be before end_time")

        try:
            # 2. Validate references while holding the doctor's booking lock
            await self.lock_doctor_schedule(data.doctor_id)
            doctor = await self.get_active_doctor(data.doctor_id)
            await self.ensure_patients_exist(patient_ids)
            if not settings.ALLOW_DOUBLE_BOOKING:
                await self.ensure_doctor_is_free(doctor.id, start_time, end_time)

            # 3. Service, participants and notes in one transaction
            service = Service(
                service_type=data.service_type,
                doctor_id=doctor.id,
                start_time=start_time,
                end_time=end_time,
                status=ServiceStatus.SCHEDULED,
            )
            self.session.add(service)
            await self.session.flush()
            participants = [ServiceParticipant(service_id=service.id, patient_id=patient_id) for patient_id in patient_ids]
            self.session.add_all(participants)
            await self.session.flush()
            if data.notes:
                self.session.add_all([
                    Note(
                        service_id=service.id,
                        participant_id=participant.id,
                        doctor_id=doctor.id,
                        patient_id=participant.patient_id,
                        content=data.notes,
                    )
                    for participant in participants
                ])
            audit.record(
                self.session, "service.created", "service", service.id,
                actor_id=actor.id if actor else None,
                payload={"type": data.service_type.value, "patients": [str(p) for p in patient_ids]},
            )
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError("Service could not be created because of conflicting data")
        except ClinicError:
            # Release the booking lock before reporting
            await self.session.rollback()
            raise

        return await self.get_service(service.id)

    async def get_service(self, service_id: UUID) -> Service:
        stmt = (
            select(Service)
            .where(Service.id == service_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        service = result.scalars().first()
        if not service:
            raise NotFoundError("Service not found")
        return service

    async def get_service_with_notes(self, service_id: UUID) -> Tuple[Service, List[Note]]:
        service = await self.get_service(service_id)
        stmt = select(Note).where(Note.service_id == service_id).order_by(Note.created_at)
        result = await self.session.execute(stmt)
        return service, result.scalars().all()

    async def list_services(
        self,
        doctor_id: Optional[UUID] = None,
        patient_id: Optional[UUID] = None,
        status: Optional[ServiceStatus] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        ascending: bool = False,
    ) -> List[Service]:
        stmt = select(Service)
        if doctor_id is not None:
            stmt = stmt.where(Service.doctor_id == doctor_id)
        if patient_id is not None:
            stmt = stmt.join(ServiceParticipant, ServiceParticipant.service_id == Service.id).where(
                ServiceParticipant.patient_id == patient_id
            )
        if status is not None:
            stmt = stmt.where(Service.status == status)
        if start is not None:
            stmt = stmt.where(Service.start_time >= start)
        if end is not None:
            stmt = stmt.where(Service.start_time < end)
        order = Service.start_time.asc() if ascending else Service.start_time.desc()
        result = await self.session.execute(stmt.order_by(order))
        return result.scalars().all()

    async def list_for_day_range(self, first_day: date, last_day: date) -> List[Service]:
        if first_day > last_day:
            raise ValidationError("start_date must not be after end_date")
        start = start_of_day(first_day)
        end = start_of_day(last_day + timedelta(days=1))
        return await self.list_services(start=start, end=end, ascending=True)

    async def calendar_events(
        self,
        start: datetime,
        end: datetime,
        doctor_id: Optional[UUID] = None,
        status: Optional[ServiceStatus] = None,
        patient_name: Optional[str] = None,
    ) -> List[CalendarEvent]:
        start, end = to_utc(start), to_utc(end)
        if start >= end:
            raise ValidationError("start must be before end")
        # Every service overlapping the window
        stmt = (
            select(Service)
            .where(Service.start_time < end, Service.end_time > start)
            .order_by(Service.start_time.asc())
        )
        result = await self.session.execute(stmt)
        predicate = calendar.build_filter(doctor_id=doctor_id, status=status, patient_name=patient_name)
        return calendar.project(result.scalars().all(), predicate)

    async def _transition(
        self, service_id: UUID, target: ServiceStatus, verb: str, actor: Optional[User], **values
    ) -> Service:
        moved = await apply_transition(
            self.session, Service, service_id, SERVICE_TRANSITIONS, target,
            updated_at=utcnow(), **values,
        )
        if not moved:
            await self.session.rollback()
            current = await self.session.get(Service, service_id, populate_existing=True)
            if current is None:
                raise NotFoundError("Service not found")
            logger.warning(f"Refused to {verb} service {service_id} in status {current.status.value}")
            raise InvalidStateError(f"Cannot {verb} a {current.status.value.lower()} service")

        audit.record(
            self.session, f"service.{target.value.lower()}", "service", service_id,
            actor_id=actor.id if actor else None,
            payload={key: value for key, value in values.items() if isinstance(value, str)} or None,
        )
        await self.session.commit()
        return await self.get_service(service_id)

    async def cancel_service(
        self, service_id: UUID, reason: Optional[str] = None, actor: Optional[User] = None
    ) -> Service:
        reason = (reason or "").strip() or "Cancelled by user"
        return await self._transition(
            service_id, ServiceStatus.CANCELLED, "cancel", actor, cancel_reason=reason
        )

    async def complete_service(self, service_id: UUID, actor: Optional[User] = None) -> Service:
        return await self._transition(service_id, ServiceStatus.COMPLETED, "complete", actor)

    async def mark_attendance(
        self,
        service_id: UUID,
        participant_id: UUID,
        attendance_status: AttendanceStatus,
        actor: Optional[User] = None,
    ) -> Service:
        service = await self.get_service(service_id)
        if service.status == ServiceStatus.CANCELLED:
            raise InvalidStateError("Cannot record attendance for a cancelled service")

        participant = next((p for p in service.participants if p.id == participant_id), None)
        if participant is None:
            raise NotFoundError("Participant not found for this service")

        if attendance_status in (AttendanceStatus.ATTENDED, AttendanceStatus.NO_SHOW) \
                and service.start_time > utcnow():
            raise ValidationError("Attendance can only be recorded once the service has started")

        participant.attendance_status = attendance_status
        self.session.add(participant)
        audit.record(
            self.session, "participant.attendance", "service_participant", participant.id,
            actor_id=actor.id if actor else None,
            payload={"attendance_status": attendance_status.value},
        )
        await self.session.commit()
        return await self.get_service(service_id)
