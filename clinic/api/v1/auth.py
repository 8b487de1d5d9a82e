from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.api.deps import get_current_user, get_token_store, oauth2_scheme
from clinic.core.redis import RedisClient
from clinic.db.models import User
from clinic.db.session import get_session
from clinic.schemas.auth import LoginRequest, LoginResponse
from clinic.schemas.user import CurrentUserResponse
from clinic.services.auth_service import AuthService

router = APIRouter()


async def get_auth_service(
    session: AsyncSession = Depends(get_session),
    token_store: RedisClient = Depends(get_token_store),
) -> AuthService:
    return AuthService(session, token_store)


@router.post("/login", response_model=LoginResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service),
):
    return await service.login(login_data)


@router.post("/logout", status_code=204)
async def logout(
    token: str = Depends(oauth2_scheme),
    user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    await service.logout(token)


@router.get("/me", response_model=CurrentUserResponse)
async def read_me(
    user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    return await service.describe_user(user)
