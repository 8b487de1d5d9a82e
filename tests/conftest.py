import json
from datetime import timedelta

import pytest
from httpx import ASGITransport, AsyncClient
from sqlmodel import select

from clinic.core.config import settings
from clinic.core.security import create_access_token
from clinic.core.utils import utcnow
from clinic.db.models import Doctor, Patient, Service, ServiceParticipant, ServiceTypeDefinition, User
from clinic.db.models.enums import Role, ServiceStatus, ServiceType
from clinic.db.session import Database
from clinic.main import app


class FakeTokenStore:
    """In-process stand-in for the Redis token store."""

    def __init__(self):
        self.tokens = {}

    async def set_token(self, token: str, value: str, expire: int):
        self.tokens[f"session:{token}"] = value

    async def get_token(self, token: str):
        return self.tokens.get(f"session:{token}")

    async def delete_token(self, token: str):
        self.tokens.pop(f"session:{token}", None)

    async def close(self):
        pass


@pytest.fixture
async def db(tmp_path):
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'clinic.db'}")
    await database.connect()
    await database.create_all()
    yield database
    await database.disconnect()


@pytest.fixture
def token_store():
    return FakeTokenStore()


@pytest.fixture
async def client(db, token_store):
    # The lifespan does not run under ASGITransport; wire the handles directly
    app.state.db = db
    app.state.token_store = token_store
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def session(db):
    async with db.session() as session:
        yield session


async def make_user(session, role: Role, email: str, first_name: str, last_name: str, password_hash=None) -> User:
    user = User(
        email=email,
        first_name=first_name,
        last_name=last_name,
        role=role,
        password_hash=password_hash,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


async def make_doctor(session, email: str, first_name: str, last_name: str, is_active: bool = True) -> Doctor:
    user = await make_user(session, Role.DOCTOR, email, first_name, last_name)
    doctor = Doctor(user_id=user.id, specialization="Psychiatry", is_active=is_active)
    session.add(doctor)
    await session.commit()
    await session.refresh(doctor)
    return doctor


async def make_patient(session, email: str, first_name: str, last_name: str) -> Patient:
    user = await make_user(session, Role.PATIENT, email, first_name, last_name)
    patient = Patient(user_id=user.id)
    session.add(patient)
    await session.commit()
    await session.refresh(patient)
    return patient


async def make_service(
    session,
    doctor: Doctor,
    patients,
    service_type: ServiceType = ServiceType.CONSULTATION,
    start=None,
    status: ServiceStatus = ServiceStatus.SCHEDULED,
) -> Service:
    start = start or utcnow() + timedelta(days=1)
    service = Service(
        service_type=service_type,
        doctor_id=doctor.id,
        start_time=start,
        end_time=start + timedelta(hours=1),
        status=status,
    )
    session.add(service)
    await session.flush()
    for patient in patients:
        session.add(ServiceParticipant(service_id=service.id, patient_id=patient.id))
    await session.commit()
    result = await session.execute(
        select(Service).where(Service.id == service.id).execution_options(populate_existing=True)
    )
    return result.scalars().one()


@pytest.fixture
async def admin(session):
    return await make_user(session, Role.ADMIN, "admin@mindcare.test", "Ana", "Admin")


@pytest.fixture
async def receptionist(session):
    return await make_user(session, Role.RECEPTIONIST, "desk@mindcare.test", "Rita", "Desk")


@pytest.fixture
async def doctor(session):
    return await make_doctor(session, "house@mindcare.test", "Gregory", "House")


@pytest.fixture
async def patient(session):
    return await make_patient(session, "jane@mindcare.test", "Jane", "Doe")


@pytest.fixture
async def other_patient(session):
    return await make_patient(session, "john@mindcare.test", "John", "Smith")


@pytest.fixture
async def service_type(session):
    definition = ServiceTypeDefinition(name="Individual therapy", duration_minutes=50)
    session.add(definition)
    await session.commit()
    await session.refresh(definition)
    return definition


@pytest.fixture
def auth_headers(token_store):
    """Issue a token for a user and register it the way login does."""

    async def issue(user: User) -> dict:
        token = create_access_token({"sub": str(user.id), "role": user.role.value})
        await token_store.set_token(
            token,
            json.dumps({"user_id": str(user.id), "role": user.role.value}),
            settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        )
        return {"Authorization": f"Bearer {token}"}

    return issue


async def user_of(session, profile) -> User:
    return await session.get(User, profile.user_id)
