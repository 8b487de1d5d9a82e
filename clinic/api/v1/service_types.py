from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.api.deps import get_current_user, require_roles
from clinic.db.models import User
from clinic.db.models.enums import Role
from clinic.db.session import get_session
from clinic.schemas.service_type import ServiceTypeCreate, ServiceTypeResponse
from clinic.services.service_type_service import ServiceTypeService

router = APIRouter()


@router.get("", response_model=List[ServiceTypeResponse])
async def list_service_types(
    include_inactive: bool = False,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    service = ServiceTypeService(session)
    return await service.list_service_types(include_inactive=include_inactive)


@router.post("", response_model=ServiceTypeResponse, status_code=201)
async def create_service_type(
    request: ServiceTypeCreate,
    user: User = Depends(require_roles(Role.ADMIN)),
    session: AsyncSession = Depends(get_session),
):
    service = ServiceTypeService(session)
    return await service.create_service_type(request)
