from datetime import timedelta
from uuid import UUID

import pytest
from sqlmodel import select

from clinic.core.utils import utcnow
from clinic.db.models import AuditLog, Note, Service
from clinic.db.models.enums import ServiceStatus, ServiceType

from conftest import make_doctor, make_patient, make_service, user_of


def slot(days=1, hours=1):
    start = (utcnow() + timedelta(days=days)).replace(hour=10, minute=0, second=0, microsecond=0)
    return start.isoformat(), (start + timedelta(hours=hours)).isoformat()


def consultation(doctor, patient, days=1, **extra):
    start, end = slot(days)
    body = {
        "service_type": "Consultation",
        "doctor_id": str(doctor.id),
        "patient_id": str(patient.id),
        "start_time": start,
        "end_time": end,
    }
    body.update(extra)
    return body


@pytest.fixture
async def staff_headers(auth_headers, receptionist):
    return await auth_headers(receptionist)


@pytest.mark.asyncio
async def test_create_consultation(client, staff_headers, doctor, patient):
    response = await client.post(
        "/api/v1/services", json=consultation(doctor, patient, notes="First visit"), headers=staff_headers
    )
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "Scheduled"
    assert data["service_type"] == "Consultation"
    assert data["doctor"]["last_name"] == "House"
    assert len(data["participants"]) == 1
    assert data["participants"][0]["patient_id"] == str(patient.id)
    assert data["participants"][0]["attendance_status"] == "Expected"

    detail = await client.get(f"/api/v1/services/{data['id']}", headers=staff_headers)
    assert detail.status_code == 200
    assert [note["content"] for note in detail.json()["notes"]] == ["First visit"]


@pytest.mark.asyncio
async def test_consultation_needs_exactly_one_patient(client, staff_headers, doctor, patient, other_patient):
    body = consultation(doctor, patient)
    del body["patient_id"]

    body["patient_ids"] = [str(patient.id), str(other_patient.id)]
    response = await client.post("/api/v1/services", json=body, headers=staff_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "A consultation must have exactly one patient"

    body["patient_ids"] = []
    response = await client.post("/api/v1/services", json=body, headers=staff_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_group_of_one_is_allowed(client, staff_headers, doctor, patient):
    start, end = slot()
    body = {
        "service_type": "GroupConsultation",
        "doctor_id": str(doctor.id),
        "patient_ids": [str(patient.id)],
        "start_time": start,
        "end_time": end,
    }
    response = await client.post("/api/v1/services", json=body, headers=staff_headers)
    assert response.status_code == 201
    assert response.json()["service_type"] == "GroupConsultation"


@pytest.mark.asyncio
async def test_group_rejects_duplicate_patients(client, staff_headers, doctor, patient):
    start, end = slot()
    body = {
        "service_type": "GroupConsultation",
        "doctor_id": str(doctor.id),
        "patient_ids": [str(patient.id), str(patient.id)],
        "start_time": start,
        "end_time": end,
    }
    response = await client.post("/api/v1/services", json=body, headers=staff_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_start_must_precede_end(client, staff_headers, doctor, patient):
    body = consultation(doctor, patient)
    body["end_time"] = body["start_time"]
    response = await client.post("/api/v1/services", json=body, headers=staff_headers)
    assert response.status_code == 400
    assert "before" in response.json()["message"]


@pytest.mark.asyncio
async def test_inactive_doctor_is_rejected(client, staff_headers, session, patient):
    retired = await make_doctor(session, "retired@mindcare.test", "Old", "Timer", is_active=False)
    response = await client.post("/api/v1/services", json=consultation(retired, patient), headers=staff_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_unknown_fields_are_rejected(client, staff_headers, doctor, patient):
    response = await client.post(
        "/api/v1/services", json=consultation(doctor, patient, room="B12"), headers=staff_headers
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Validation error"


@pytest.mark.asyncio
async def test_missing_patient_persists_nothing(client, staff_headers, session, doctor, patient):
    start, end = slot()
    body = {
        "service_type": "GroupConsultation",
        "doctor_id": str(doctor.id),
        "patient_ids": [str(patient.id), "00000000-0000-0000-0000-000000000000"],
        "start_time": start,
        "end_time": end,
    }
    response = await client.post("/api/v1/services", json=body, headers=staff_headers)
    assert response.status_code == 404

    result = await session.execute(select(Service))
    assert result.scalars().all() == []


@pytest.mark.asyncio
async def test_doctor_cannot_be_double_booked(client, staff_headers, doctor, patient, other_patient):
    first = await client.post("/api/v1/services", json=consultation(doctor, patient), headers=staff_headers)
    assert first.status_code == 201

    second = await client.post("/api/v1/services", json=consultation(doctor, other_patient), headers=staff_headers)
    assert second.status_code == 409


@pytest.mark.asyncio
async def test_cancel_twice_fails_second_time(client, staff_headers, session, doctor, patient):
    service = await make_service(session, doctor, [patient])

    response = await client.patch(
        f"/api/v1/services/{service.id}/cancel", json={"cancel_reason": "Patient is ill"}, headers=staff_headers
    )
    assert response.status_code == 200
    assert response.json()["status"] == "Cancelled"
    assert response.json()["cancel_reason"] == "Patient is ill"

    again = await client.patch(
        f"/api/v1/services/{service.id}/cancel", json={"cancel_reason": "Again"}, headers=staff_headers
    )
    assert again.status_code == 409
    assert again.json()["message"] == "Cannot cancel a cancelled service"

    detail = await client.get(f"/api/v1/services/{service.id}", headers=staff_headers)
    assert detail.json()["status"] == "Cancelled"
    assert detail.json()["cancel_reason"] == "Patient is ill"


@pytest.mark.asyncio
async def test_cancel_without_reason_uses_default(client, staff_headers, session, doctor, patient):
    service = await make_service(session, doctor, [patient])
    response = await client.patch(f"/api/v1/services/{service.id}/cancel", headers=staff_headers)
    assert response.status_code == 200
    assert response.json()["cancel_reason"] == "Cancelled by user"


@pytest.mark.asyncio
async def test_complete_then_cancel(client, staff_headers, session, doctor, patient):
    service = await make_service(session, doctor, [patient])

    completed = await client.patch(f"/api/v1/services/{service.id}/complete", headers=staff_headers)
    assert completed.status_code == 200
    assert completed.json()["status"] == "Completed"

    cancelled = await client.patch(f"/api/v1/services/{service.id}/cancel", headers=staff_headers)
    assert cancelled.status_code == 409
    assert cancelled.json()["message"] == "Cannot cancel a completed service"

    again = await client.patch(f"/api/v1/services/{service.id}/complete", headers=staff_headers)
    assert again.status_code == 409

    result = await session.execute(select(AuditLog.action).where(AuditLog.entity_id == service.id))
    assert result.scalars().all() == ["service.completed"]


@pytest.mark.asyncio
async def test_unknown_service_is_not_found(client, staff_headers):
    response = await client.patch(
        "/api/v1/services/00000000-0000-0000-0000-000000000000/complete", headers=staff_headers
    )
    assert response.status_code == 404
    assert response.json() == {"message": "Service not found"}


@pytest.mark.asyncio
async def test_auth_is_required(client, auth_headers, session, doctor, patient):
    response = await client.get("/api/v1/services")
    assert response.status_code == 401
    assert "message" in response.json()

    patient_headers = await auth_headers(await user_of(session, patient))
    response = await client.post("/api/v1/services", json=consultation(doctor, patient), headers=patient_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_patient_sees_only_own_services(client, auth_headers, session, doctor, patient, other_patient):
    mine = await make_service(session, doctor, [patient])
    theirs = await make_service(session, doctor, [other_patient], start=utcnow() + timedelta(days=3))
    headers = await auth_headers(await user_of(session, patient))

    response = await client.get("/api/v1/patient/current/services", headers=headers)
    assert response.status_code == 200
    assert [s["id"] for s in response.json()] == [str(mine.id)]

    own = await client.get(f"/api/v1/services/{mine.id}", headers=headers)
    assert own.status_code == 200
    assert own.json()["notes"] == []

    other = await client.get(f"/api/v1/services/{theirs.id}", headers=headers)
    assert other.status_code == 403


@pytest.mark.asyncio
async def test_doctor_current_services(client, auth_headers, session, doctor, patient, receptionist):
    colleague = await make_doctor(session, "wilson@mindcare.test", "James", "Wilson")
    await make_service(session, doctor, [patient])
    await make_service(session, colleague, [patient], start=utcnow() + timedelta(days=2))

    response = await client.get(
        "/api/v1/doctor/current/services", headers=await auth_headers(await user_of(session, doctor))
    )
    assert response.status_code == 200
    assert [s["doctor_id"] for s in response.json()] == [str(doctor.id)]

    response = await client.get("/api/v1/doctor/current/services", headers=await auth_headers(receptionist))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_inactive_doctor_profile_is_locked_out(client, session, auth_headers):
    retired = await make_doctor(session, "retired@mindcare.test", "Old", "Timer", is_active=False)
    headers = await auth_headers(await user_of(session, retired))

    for path in ("/api/v1/doctor/current/services", "/api/v1/notices/doctor", "/api/v1/notes/doctor"):
        response = await client.get(path, headers=headers)
        assert response.status_code == 403, path
        assert response.json()["message"] == "Access denied. This doctor profile is inactive."


@pytest.mark.asyncio
async def test_calendar_filters(client, staff_headers, session, doctor, patient, other_patient):
    colleague = await make_doctor(session, "cuddy@mindcare.test", "Lisa", "Cuddy")
    base = (utcnow() + timedelta(days=5)).replace(hour=9, minute=0, second=0, microsecond=0)
    first = await make_service(session, doctor, [patient], start=base)
    await make_service(session, colleague, [other_patient], start=base + timedelta(hours=2))
    await make_service(session, doctor, [other_patient], start=base + timedelta(hours=4), status=ServiceStatus.CANCELLED)
    await make_service(session, doctor, [patient], start=base + timedelta(days=10))

    window = {"start": (base - timedelta(hours=1)).isoformat(), "end": (base + timedelta(hours=8)).isoformat()}

    response = await client.get("/api/v1/services/calendar", params=window, headers=staff_headers)
    assert response.status_code == 200
    assert len(response.json()) == 3

    params = dict(window, doctor_id=str(doctor.id), status="Scheduled")
    response = await client.get("/api/v1/services/calendar", params=params, headers=staff_headers)
    events = response.json()
    assert [event["id"] for event in events] == [str(first.id)]
    assert events[0]["title"] == "Consultation - Gregory House"
    assert events[0]["participants"][0]["name"] == "Jane Doe"

    params = dict(window, patient="smith")
    response = await client.get("/api/v1/services/calendar", params=params, headers=staff_headers)
    assert len(response.json()) == 2


@pytest.mark.asyncio
async def test_calendar_window_must_be_ordered(client, staff_headers):
    now = utcnow()
    params = {"start": now.isoformat(), "end": (now - timedelta(days=1)).isoformat()}
    response = await client.get("/api/v1/services/calendar", params=params, headers=staff_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_by_range_is_inclusive_and_ordered(client, staff_headers, session, doctor, patient):
    day = (utcnow() + timedelta(days=7)).replace(hour=8, minute=0, second=0, microsecond=0)
    late = await make_service(session, doctor, [patient], start=day + timedelta(days=1, hours=10))
    early = await make_service(session, doctor, [patient], start=day)
    await make_service(session, doctor, [patient], start=day + timedelta(days=3))

    params = {"start_date": day.date().isoformat(), "end_date": (day + timedelta(days=1)).date().isoformat()}
    response = await client.get("/api/v1/services/by-range", params=params, headers=staff_headers)
    assert response.status_code == 200
    assert [s["id"] for s in response.json()] == [str(early.id), str(late.id)]

    response = await client.get(
        "/api/v1/services/by-date", params={"date": day.date().isoformat()}, headers=staff_headers
    )
    assert [s["id"] for s in response.json()] == [str(early.id)]


@pytest.mark.asyncio
async def test_attendance_rules(client, staff_headers, session, doctor, patient):
    upcoming = await make_service(session, doctor, [patient])
    participant_id = upcoming.participants[0].id
    url = f"/api/v1/services/{upcoming.id}/participants/{participant_id}/attendance"

    early = await client.patch(url, json={"attendance_status": "Attended"}, headers=staff_headers)
    assert early.status_code == 400

    excused = await client.patch(url, json={"attendance_status": "Excused"}, headers=staff_headers)
    assert excused.status_code == 200
    assert excused.json()["participants"][0]["attendance_status"] == "Excused"

    past = await make_service(session, doctor, [patient], start=utcnow() - timedelta(hours=3))
    url = f"/api/v1/services/{past.id}/participants/{past.participants[0].id}/attendance"
    attended = await client.patch(url, json={"attendance_status": "Attended"}, headers=staff_headers)
    assert attended.status_code == 200
    assert attended.json()["participants"][0]["attendance_status"] == "Attended"


@pytest.mark.asyncio
async def test_no_attendance_on_cancelled_service(client, staff_headers, session, doctor, patient):
    service = await make_service(
        session, doctor, [patient], start=utcnow() - timedelta(hours=3), status=ServiceStatus.CANCELLED
    )
    url = f"/api/v1/services/{service.id}/participants/{service.participants[0].id}/attendance"
    response = await client.patch(url, json={"attendance_status": "NoShow"}, headers=staff_headers)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_one_note_per_participant(client, staff_headers, session, doctor, patient):
    other = await make_patient(session, "mary@mindcare.test", "Mary", "Major")
    start, end = slot()
    body = {
        "service_type": ServiceType.GROUP_CONSULTATION.value,
        "doctor_id": str(doctor.id),
        "patient_ids": [str(patient.id), str(other.id)],
        "start_time": start,
        "end_time": end,
        "notes": "Group intro session",
    }
    response = await client.post("/api/v1/services", json=body, headers=staff_headers)
    assert response.status_code == 201

    result = await session.execute(select(Note.patient_id).where(Note.service_id == UUID(response.json()["id"])))
    assert set(result.scalars().all()) == {patient.id, other.id}
