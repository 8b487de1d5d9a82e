"""
Notice issuance.

Notice numbers look like ``NOTICE-202610-007``: a prefix, the issue month and
a per-month sequence. The sequence lives in a ``counters`` row that is
advanced with a single ``UPDATE ... RETURNING``, so a number is reserved the
moment it is handed out and two callers can never receive the same one.
Explicit numbers supplied by staff are still guarded by the unique index.
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from clinic.core.config import settings
from clinic.core.exceptions import ConflictError, NotFoundError, ValidationError
from clinic.core.logger import logger
from clinic.core.utils import format_notice_number, month_period, to_utc, utcnow
from clinic.db.models import Counter, Notice, Service, ServiceParticipant
from clinic.db.models.enums import ServiceStatus
from clinic.schemas.notice import NoticeCreate, NoticeUpdate
from clinic.services import audit

NOTICE_COUNTER = "notice"


class NoticeService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _advance_counter(self, name: str, period: str) -> Optional[int]:
        stmt = (
            update(Counter)
            .where(Counter.name == name, Counter.period == period)
            .values(last_value=Counter.last_value + 1)
            .returning(Counter.last_value)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.scalar()

    async def _next_sequence(self, name: str, period: str) -> int:
        value = await self._advance_counter(name, period)
        if value is not None:
            return value
        # First number of the period: create the row, losing gracefully to a concurrent creator
        try:
            async with self.session.begin_nested():
                self.session.add(Counter(name=name, period=period, last_value=1))
            return 1
        except IntegrityError:
            value = await self._advance_counter(name, period)
            if value is None:
                raise ConflictError("Could not reserve a notice number, retry")
            return value

    async def reserve_number(self, moment: Optional[datetime] = None) -> str:
        """Reserve the next number for the month of ``moment``; the caller commits."""
        period = month_period(moment or utcnow())
        sequence = await self._next_sequence(NOTICE_COUNTER, period)
        return format_notice_number(settings.NOTICE_NUMBER_PREFIX, period, sequence)

    async def generate_number(self) -> str:
        number = await self.reserve_number()
        await self.session.commit()
        logger.info(f"Reserved notice number {number}")
        return number

    async def ensure_number_free(self, number: str, exclude_id: Optional[UUID] = None):
        stmt = select(Notice.id).where(Notice.unique_notice_number == number)
        if exclude_id is not None:
            stmt = stmt.where(Notice.id != exclude_id)
        result = await self.session.execute(stmt)
        if result.scalars().first() is not None:
            raise ConflictError(f"Notice number {number} is already in use")

    @staticmethod
    def check_dates(issue_date: datetime, expiry_date: Optional[datetime]):
        if expiry_date is not None and expiry_date < issue_date:
            raise ValidationError("expiry_date cannot be before issue_date")

    async def create_notice(self, data: NoticeCreate, actor_id: Optional[UUID] = None) -> Notice:
        # 1. The participant must belong to the service
        service = await self.session.get(Service, data.service_id)
        if not service:
            raise NotFoundError("Service not found")
        participant = await self.session.get(ServiceParticipant, data.participant_id)
        if not participant or participant.service_id != service.id:
            raise ValidationError("participant_id does not belong to the given service")

        issue_date = to_utc(data.issue_date) if data.issue_date else utcnow()
        expiry_date = to_utc(data.expiry_date) if data.expiry_date else None
        self.check_dates(issue_date, expiry_date)

        # 2. Number: explicit ones must be free, otherwise reserve one
        number = data.unique_notice_number.strip() if data.unique_notice_number else None
        if number:
            await self.ensure_number_free(number)
        else:
            number = await self.reserve_number(issue_date)

        notice = Notice(
            service_id=service.id,
            participant_id=participant.id,
            issue_date=issue_date,
            unique_notice_number=number,
            expiry_date=expiry_date,
            reason_for_issuance=data.reason_for_issuance,
            fitness_status=data.fitness_status,
            recommendations=data.recommendations,
            attachment_path=data.attachment_path,
        )
        self.session.add(notice)
        audit.record(self.session, "notice.issued", "notice", notice.id, actor_id=actor_id,
                     payload={"number": number})
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError(f"Notice number {number} is already in use")
        return await self.get_notice(notice.id)

    async def get_notice(self, notice_id: UUID) -> Notice:
        stmt = select(Notice).where(Notice.id == notice_id).execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        notice = result.scalars().first()
        if not notice:
            raise NotFoundError("Notice not found")
        return notice

    async def list_notices(
        self, doctor_id: Optional[UUID] = None, patient_id: Optional[UUID] = None
    ) -> List[Notice]:
        stmt = select(Notice)
        if doctor_id is not None:
            stmt = stmt.join(Service, Service.id == Notice.service_id).where(Service.doctor_id == doctor_id)
        if patient_id is not None:
            stmt = stmt.join(ServiceParticipant, ServiceParticipant.id == Notice.participant_id).where(
                ServiceParticipant.patient_id == patient_id
            )
        result = await self.session.execute(stmt.order_by(Notice.issue_date.desc()))
        return result.scalars().all()

    async def update_notice(self, notice_id: UUID, data: NoticeUpdate, actor_id: Optional[UUID] = None) -> Notice:
        notice = await self.get_notice(notice_id)
        changes = data.model_dump(exclude_unset=True)

        if "unique_notice_number" in changes:
            number = (changes["unique_notice_number"] or "").strip()
            if not number:
                raise ValidationError("unique_notice_number cannot be empty")
            await self.ensure_number_free(number, exclude_id=notice.id)
            changes["unique_notice_number"] = number
        for key in ("issue_date", "expiry_date"):
            if changes.get(key) is not None:
                changes[key] = to_utc(changes[key])
        if "issue_date" in changes and changes["issue_date"] is None:
            raise ValidationError("issue_date cannot be empty")

        self.check_dates(
            changes.get("issue_date", notice.issue_date),
            changes.get("expiry_date", notice.expiry_date),
        )
        for key, value in changes.items():
            setattr(notice, key, value)
        notice.updated_at = utcnow()
        self.session.add(notice)
        audit.record(self.session, "notice.updated", "notice", notice.id, actor_id=actor_id,
                     payload={"fields": sorted(changes)})
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError("Notice number is already in use")
        return await self.get_notice(notice.id)

    async def delete_notice(self, notice_id: UUID, actor_id: Optional[UUID] = None):
        notice = await self.get_notice(notice_id)
        await self.session.delete(notice)
        audit.record(self.session, "notice.deleted", "notice", notice_id, actor_id=actor_id,
                     payload={"number": notice.unique_notice_number})
        await self.session.commit()

    async def list_eligible_services(self, doctor_id: Optional[UUID] = None) -> List[Service]:
        stmt = select(Service).where(Service.status == ServiceStatus.COMPLETED)
        if doctor_id is not None:
            stmt = stmt.where(Service.doctor_id == doctor_id)
        result = await self.session.execute(stmt.order_by(Service.start_time.desc()))
        return result.scalars().all()
