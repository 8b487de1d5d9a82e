from datetime import datetime, timedelta, timezone
from uuid import uuid4

from clinic.core.utils import format_notice_number, month_period
from clinic.db.models import Doctor, Patient, Service, ServiceParticipant, User
from clinic.db.models.enums import Role, ServiceStatus, ServiceType
from clinic.services import calendar


def build_service(doctor_name, patient_names, status=ServiceStatus.SCHEDULED, service_type=ServiceType.GROUP_CONSULTATION):
    first, last = doctor_name
    doctor = Doctor(id=uuid4(), user_id=uuid4())
    doctor.user = User(email=f"{first}@x.test", first_name=first, last_name=last, role=Role.DOCTOR)
    start = datetime(2026, 10, 20, 9, 0, tzinfo=timezone.utc)
    service = Service(
        id=uuid4(),
        service_type=service_type,
        doctor_id=doctor.id,
        start_time=start,
        end_time=start + timedelta(hours=1),
        status=status,
    )
    service.doctor = doctor
    for first_name, last_name in patient_names:
        patient = Patient(id=uuid4(), user_id=uuid4())
        patient.user = User(email=f"{first_name}@x.test", first_name=first_name, last_name=last_name, role=Role.PATIENT)
        participant = ServiceParticipant(id=uuid4(), service_id=service.id, patient_id=patient.id)
        participant.patient = patient
        service.participants.append(participant)
    return service


def test_event_title():
    service = build_service(("Gregory", "House"), [("Jane", "Doe")], service_type=ServiceType.CONSULTATION)
    assert calendar.event_title(service) == "Consultation - Gregory House"


def test_event_carries_participants():
    service = build_service(("Gregory", "House"), [("Jane", "Doe"), ("John", "Smith")])
    event = calendar.to_event(service)
    assert event.start == service.start_time
    assert event.end == service.end_time
    assert [p.name for p in event.participants] == ["Jane Doe", "John Smith"]


def test_no_filters_match_everything():
    services = [
        build_service(("Gregory", "House"), [("Jane", "Doe")]),
        build_service(("Lisa", "Cuddy"), [("John", "Smith")], status=ServiceStatus.CANCELLED),
    ]
    assert len(calendar.project(services, calendar.build_filter())) == 2


def test_filters_are_combined():
    house = build_service(("Gregory", "House"), [("Jane", "Doe")])
    cuddy = build_service(("Lisa", "Cuddy"), [("Jane", "Doe")])
    cancelled = build_service(("Gregory", "House"), [("Jane", "Doe")], status=ServiceStatus.CANCELLED)
    services = [house, cuddy, cancelled]

    predicate = calendar.build_filter(doctor_id=house.doctor_id, status=ServiceStatus.SCHEDULED)
    assert [event.id for event in calendar.project(services, predicate)] == [house.id]


def test_patient_name_is_case_insensitive_substring():
    services = [
        build_service(("Gregory", "House"), [("Jane", "Doe"), ("John", "Smith")]),
        build_service(("Gregory", "House"), [("Mary", "Major")]),
    ]
    predicate = calendar.build_filter(patient_name="  SMI ")
    assert [event.participants[1].name for event in calendar.project(services, predicate)] == ["John Smith"]

    # Matches across first and last name
    assert len(calendar.project(services, calendar.build_filter(patient_name="jane doe"))) == 1


def test_blank_patient_filter_is_ignored():
    services = [build_service(("Gregory", "House"), [("Jane", "Doe")])]
    assert len(calendar.project(services, calendar.build_filter(patient_name="   "))) == 1


def test_notice_number_format():
    assert month_period(datetime(2026, 3, 9)) == "202603"
    assert format_notice_number("NOTICE", "202603", 7) == "NOTICE-202603-007"
    assert format_notice_number("NOTICE", "202603", 1234) == "NOTICE-202603-1234"
