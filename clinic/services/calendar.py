"""
Calendar projection of services.

Filters are plain predicates over loaded ``Service`` rows and are combined
with ``all_of``; an omitted filter matches everything.
"""
from typing import Callable, Iterable, List, Optional
from uuid import UUID

from clinic.core.utils import full_name
from clinic.db.models import Service
from clinic.db.models.enums import ServiceStatus
from clinic.schemas.service import CalendarEvent, CalendarParticipant

ServicePredicate = Callable[[Service], bool]


def by_doctor(doctor_id: UUID) -> ServicePredicate:
    return lambda service: service.doctor_id == doctor_id


def by_status(status: ServiceStatus) -> ServicePredicate:
    return lambda service: service.status == status


def by_patient_name(fragment: str) -> ServicePredicate:
    needle = fragment.strip().lower()

    def matches(service: Service) -> bool:
        return any(
            needle in full_name(p.patient.user.first_name, p.patient.user.last_name).lower()
            for p in service.participants
        )

    return matches


def all_of(*predicates: ServicePredicate) -> ServicePredicate:
    return lambda service: all(predicate(service) for predicate in predicates)


def build_filter(
    doctor_id: Optional[UUID] = None,
    status: Optional[ServiceStatus] = None,
    patient_name: Optional[str] = None,
) -> ServicePredicate:
    predicates = []
    if doctor_id is not None:
        predicates.append(by_doctor(doctor_id))
    if status is not None:
        predicates.append(by_status(status))
    if patient_name and patient_name.strip():
        predicates.append(by_patient_name(patient_name))
    return all_of(*predicates)


def event_title(service: Service) -> str:
    doctor = service.doctor.user
    return f"{service.service_type.value} - {full_name(doctor.first_name, doctor.last_name)}"


def to_event(service: Service) -> CalendarEvent:
    return CalendarEvent(
        id=service.id,
        title=event_title(service),
        start=service.start_time,
        end=service.end_time,
        status=service.status,
        service_type=service.service_type,
        doctor_id=service.doctor_id,
        participants=[
            CalendarParticipant(
                participant_id=p.id,
                patient_id=p.patient_id,
                name=full_name(p.patient.user.first_name, p.patient.user.last_name),
                attendance_status=p.attendance_status,
            )
            for p in service.participants
        ],
    )


def project(services: Iterable[Service], predicate: ServicePredicate) -> List[CalendarEvent]:
    return [to_event(service) for service in services if predicate(service)]
