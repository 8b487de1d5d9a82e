from typing import Callable
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jwt.exceptions import PyJWTError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from clinic.core.config import settings
from clinic.core.exceptions import AuthenticationError, AuthorizationError, NotFoundError
from clinic.core.redis import RedisClient
from clinic.core.security import decode_access_token
from clinic.db.models import Doctor, Patient, User
from clinic.db.models.enums import Role
from clinic.db.session import get_session

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login")

STAFF_ROLES = (Role.ADMIN, Role.DOCTOR, Role.RECEPTIONIST)


def get_token_store(request: Request) -> RedisClient:
    return request.app.state.token_store


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: AsyncSession = Depends(get_session),
    token_store: RedisClient = Depends(get_token_store),
) -> User:
    try:
        payload = decode_access_token(token)
        user_id = UUID(payload.get("sub"))
    except (PyJWTError, TypeError, ValueError):
        raise AuthenticationError()

    # Logged out or expired tokens are gone from the store
    if await token_store.get_token(token) is None:
        raise AuthenticationError("Session expired, please log in again")

    user = await session.get(User, user_id)
    if user is None or not user.is_active:
        raise AuthenticationError()
    return user


def require_roles(*roles: Role) -> Callable:
    async def checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise AuthorizationError("You do not have permission to perform this action")
        return user

    return checker


async def get_current_doctor(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> Doctor:
    stmt = select(Doctor).where(Doctor.user_id == user.id)
    result = await session.execute(stmt)
    doctor = result.scalars().first()
    if not doctor:
        raise AuthorizationError("Access denied. Not a recognized doctor.")
    if not doctor.is_active:
        raise AuthorizationError("Access denied. This doctor profile is inactive.")
    return doctor


async def get_current_patient(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> Patient:
    if user.role != Role.PATIENT:
        raise AuthorizationError("Only patients can perform this action")
    stmt = select(Patient).where(Patient.user_id == user.id)
    result = await session.execute(stmt)
    patient = result.scalars().first()
    if not patient:
        raise NotFoundError("Patient profile not found")
    return patient


async def get_optional_patient(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    if user.role != Role.PATIENT:
        return None
    stmt = select(Patient).where(Patient.user_id == user.id)
    result = await session.execute(stmt)
    return result.scalars().first()
