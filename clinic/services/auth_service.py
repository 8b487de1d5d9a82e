import json
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from clinic.core.config import settings
from clinic.core.exceptions import AuthenticationError
from clinic.core.logger import logger
from clinic.core.redis import RedisClient
from clinic.core.security import create_access_token, verify_password
from clinic.core.utils import utcnow
from clinic.db.models import Doctor, Patient, User
from clinic.schemas.auth import LoginRequest, LoginResponse
from clinic.schemas.user import CurrentUserResponse, UserResponse


class AuthService:
    def __init__(self, session: AsyncSession, token_store: RedisClient):
        self.session = session
        self.token_store = token_store

    async def describe_user(self, user: User) -> CurrentUserResponse:
        doctor = (await self.session.execute(select(Doctor.id).where(Doctor.user_id == user.id))).scalars().first()
        patient = (await self.session.execute(select(Patient.id).where(Patient.user_id == user.id))).scalars().first()
        return CurrentUserResponse(
            **UserResponse.model_validate(user).model_dump(),
            doctor_id=doctor,
            patient_id=patient,
        )

    async def login(self, login_data: LoginRequest) -> LoginResponse:
        # 1. Find the user
        stmt = select(User).where(User.email == login_data.email.strip().lower())
        result = await self.session.execute(stmt)
        user = result.scalars().first()

        # 2. Verify password
        if not user or not user.is_active or not verify_password(login_data.password, user.password_hash):
            logger.warning(f"Failed login for {login_data.email}")
            raise AuthenticationError("Invalid email or password")

        # 3. Generate token
        access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        access_token = create_access_token(
            data={"sub": str(user.id), "role": user.role.value}, expires_delta=access_token_expires
        )

        # 4. Store in Redis
        token_data = {"user_id": str(user.id), "role": user.role.value}
        await self.token_store.set_token(
            access_token,
            json.dumps(token_data),
            settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        )

        user.last_login_at = utcnow()
        self.session.add(user)
        await self.session.commit()
        logger.info(f"User {user.id} logged in")

        return LoginResponse(
            access_token=access_token,
            token_type="bearer",
            user=await self.describe_user(user),
        )

    async def logout(self, token: str):
        await self.token_store.delete_token(token)

