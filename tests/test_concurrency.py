"""
Two sessions stand in for two concurrent requests against the same rows.
Each one reads the entity first, then the other commits a transition, then
the first tries its own. The conditional update must refuse the stale one.
"""
import asyncio
from datetime import timedelta

import pytest
from sqlmodel import select

from clinic.core.exceptions import ConflictError, InvalidStateError
from clinic.core.utils import utcnow
from clinic.db.models import Service
from clinic.db.models.enums import ServiceStatus, ServiceType
from clinic.schemas.service import ServiceCreate
from clinic.schemas.service_request import ServiceRequestCreate
from clinic.services.notice_service import NoticeService
from clinic.services.scheduling_service import SchedulingService
from clinic.services.service_request_service import ServiceRequestService

from conftest import make_service, user_of


@pytest.mark.asyncio
async def test_cancel_loses_to_complete(db, session, doctor, patient):
    service = await make_service(session, doctor, [patient])

    async with db.session() as first, db.session() as second:
        canceller = SchedulingService(first)
        completer = SchedulingService(second)

        seen = await canceller.get_service(service.id)
        assert seen.status == ServiceStatus.SCHEDULED

        completed = await completer.complete_service(service.id)
        assert completed.status == ServiceStatus.COMPLETED

        with pytest.raises(InvalidStateError, match="completed"):
            await canceller.cancel_service(service.id, "Too late")

    async with db.session() as check:
        final = await SchedulingService(check).get_service(service.id)
        assert final.status == ServiceStatus.COMPLETED
        assert final.cancel_reason is None


@pytest.mark.asyncio
async def test_approve_and_reject_race(db, session, patient, service_type):
    user = await user_of(session, patient)
    request = await ServiceRequestService(session).create_request(
        ServiceRequestCreate(
            service_type_id=service_type.id,
            preferred_date_1="2026-11-02T09:00:00",
            preferred_time="afternoon",
            reason="Follow up after the first consultation",
        ),
        user,
    )

    async with db.session() as first, db.session() as second:
        approver = ServiceRequestService(first)
        rejecter = ServiceRequestService(second)
        await approver.get_request(request.id)
        await rejecter.get_request(request.id)

        await rejecter.reject_request(request.id, "Duplicate request")
        with pytest.raises(InvalidStateError):
            await approver.approve_request(request.id)


@pytest.mark.asyncio
async def test_reserved_notice_numbers_are_distinct(db):
    async with db.session() as first, db.session() as second:
        numbers = [
            await NoticeService(first).generate_number(),
            await NoticeService(second).generate_number(),
            await NoticeService(first).generate_number(),
        ]

    assert len(set(numbers)) == 3
    assert [number.rsplit("-", 1)[1] for number in numbers] == ["001", "002", "003"]


def booking(doctor, patient, start):
    return ServiceCreate(
        service_type=ServiceType.CONSULTATION,
        doctor_id=doctor.id,
        patient_id=patient.id,
        start_time=start,
        end_time=start + timedelta(hours=1),
    )


async def scheduled_count(db, doctor):
    async with db.session() as check:
        result = await check.execute(
            select(Service).where(Service.doctor_id == doctor.id, Service.status == ServiceStatus.SCHEDULED)
        )
        return len(result.scalars().all())


@pytest.mark.asyncio
async def test_second_booking_sees_the_first(db, doctor, patient, other_patient):
    start = (utcnow() + timedelta(days=2)).replace(minute=0, second=0, microsecond=0)

    async with db.session() as first, db.session() as second:
        # Both sessions have looked at the doctor before either books
        await SchedulingService(first).get_active_doctor(doctor.id)
        await SchedulingService(second).get_active_doctor(doctor.id)

        await SchedulingService(first).create_service(booking(doctor, patient, start))
        with pytest.raises(ConflictError):
            await SchedulingService(second).create_service(
                booking(doctor, other_patient, start + timedelta(minutes=30))
            )

    assert await scheduled_count(db, doctor) == 1


@pytest.mark.asyncio
async def test_simultaneous_bookings_for_one_slot(db, doctor, patient, other_patient):
    start = (utcnow() + timedelta(days=3)).replace(minute=0, second=0, microsecond=0)

    async with db.session() as first, db.session() as second:
        outcomes = await asyncio.gather(
            SchedulingService(first).create_service(booking(doctor, patient, start)),
            SchedulingService(second).create_service(booking(doctor, other_patient, start)),
            return_exceptions=True,
        )

    assert sum(isinstance(outcome, Service) for outcome in outcomes) == 1
    assert sum(isinstance(outcome, ConflictError) for outcome in outcomes) == 1
    assert await scheduled_count(db, doctor) == 1


@pytest.mark.asyncio
async def test_failed_booking_releases_the_doctor(db, doctor, patient, other_patient):
    start = (utcnow() + timedelta(days=4)).replace(minute=0, second=0, microsecond=0)

    async with db.session() as first, db.session() as second:
        await SchedulingService(first).create_service(booking(doctor, patient, start))
        with pytest.raises(ConflictError):
            await SchedulingService(first).create_service(booking(doctor, other_patient, start))

        # The refused booking left no open write behind
        later = await SchedulingService(second).create_service(
            booking(doctor, other_patient, start + timedelta(hours=2))
        )
        assert later.status == ServiceStatus.SCHEDULED

    assert await scheduled_count(db, doctor) == 2
