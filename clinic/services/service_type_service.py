from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from clinic.core.exceptions import ConflictError
from clinic.db.models import ServiceTypeDefinition
from clinic.schemas.service_type import ServiceTypeCreate


class ServiceTypeService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_service_types(self, include_inactive: bool = False) -> List[ServiceTypeDefinition]:
        stmt = select(ServiceTypeDefinition)
        if not include_inactive:
            stmt = stmt.where(ServiceTypeDefinition.active == True)  # noqa: E712
        result = await self.session.execute(stmt.order_by(ServiceTypeDefinition.name))
        return result.scalars().all()

    async def create_service_type(self, data: ServiceTypeCreate) -> ServiceTypeDefinition:
        service_type = ServiceTypeDefinition(**data.model_dump())
        self.session.add(service_type)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError(f"Service type '{data.name}' already exists")
        await self.session.refresh(service_type)
        return service_type
