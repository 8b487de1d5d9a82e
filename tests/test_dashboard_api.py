from datetime import timedelta

import pytest

from clinic.core.utils import utcnow
from clinic.db.models.enums import ServiceStatus

from conftest import make_doctor, make_service, user_of
from test_tests_api import assign, create_template


@pytest.fixture
async def admin_headers(auth_headers, admin):
    return await auth_headers(admin)


@pytest.fixture
async def doctor_headers(auth_headers, session, doctor):
    return await auth_headers(await user_of(session, doctor))


@pytest.mark.asyncio
async def test_admin_stats(client, session, auth_headers, admin_headers, receptionist, doctor, doctor_headers, patient, other_patient):
    await make_service(session, doctor, [patient])
    await make_service(session, doctor, [other_patient], status=ServiceStatus.CANCELLED)
    template = await create_template(client, doctor_headers)
    test = await assign(client, doctor_headers, patient, template["latest_version"]["id"])
    await client.put(
        f"/api/v1/tests/{test['id']}/submit",
        json={"patientResponse": {"0": "ok", "1": "Good", "2": 3}},
        headers=await auth_headers(await user_of(session, patient)),
    )

    response = await client.get("/api/v1/dashboard/admin/stats", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {
        "total_users": 5,
        "active_doctors": 1,
        "active_patients": 2,
        "active_staff": 3,
        "scheduled_services": 1,
        "pending_requests": 0,
        "completed_tests_this_month": 1,
    }


@pytest.mark.asyncio
async def test_admin_views_need_admin(client, auth_headers, receptionist, doctor_headers):
    for path in ("/api/v1/dashboard/admin/stats", "/api/v1/dashboard/recent-activity"):
        assert (await client.get(path, headers=await auth_headers(receptionist))).status_code == 403
        assert (await client.get(path, headers=doctor_headers)).status_code == 403


@pytest.mark.asyncio
async def test_recent_activity_follows_the_audit_trail(client, auth_headers, admin_headers, receptionist, doctor, patient):
    start = (utcnow() + timedelta(days=1)).replace(microsecond=0)
    created = await client.post(
        "/api/v1/services",
        json={
            "service_type": "Consultation",
            "doctor_id": str(doctor.id),
            "patient_id": str(patient.id),
            "start_time": start.isoformat(),
            "end_time": (start + timedelta(hours=1)).isoformat(),
        },
        headers=await auth_headers(receptionist),
    )
    service_id = created.json()["id"]
    await client.patch(
        f"/api/v1/services/{service_id}/cancel", json={"cancel_reason": "Clash"},
        headers=await auth_headers(receptionist),
    )

    response = await client.get("/api/v1/dashboard/recent-activity", headers=admin_headers)
    assert response.status_code == 200
    items = response.json()
    assert {item["message"] for item in items} == {"service.created", "service.cancelled"}
    assert {item["type"] for item in items} == {"service"}
    assert {item["entity_id"] for item in items} == {service_id}

    limited = await client.get("/api/v1/dashboard/recent-activity?limit=1", headers=admin_headers)
    assert len(limited.json()) == 1
    too_many = await client.get("/api/v1/dashboard/recent-activity?limit=500", headers=admin_headers)
    assert too_many.status_code == 400


@pytest.mark.asyncio
async def test_doctor_activity(client, session, doctor, doctor_headers, patient, other_patient):
    service = await make_service(session, doctor, [patient], start=utcnow() - timedelta(days=2))
    colleague = await make_doctor(session, "wilson@mindcare.test", "James", "Wilson")
    await make_service(session, colleague, [other_patient], start=utcnow() - timedelta(days=1))
    template = await create_template(client, doctor_headers)
    test = await assign(client, doctor_headers, patient, template["latest_version"]["id"])

    response = await client.get("/api/v1/dashboard/doctor/recent-activity", headers=doctor_headers)
    assert response.status_code == 200
    items = response.json()
    assert [(item["type"], item["entity_id"]) for item in items] == [
        ("test", test["id"]),
        ("service", str(service.id)),
    ]
    assert items[0]["message"] == "Test assigned: Weekly check-in for Jane Doe"
    assert items[1]["message"] == "Scheduled Consultation with Jane Doe"
