from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from clinic.core.logger import logger
from clinic.db.models import AuditLog


def record(
    session: AsyncSession,
    action: str,
    entity: str,
    entity_id: Optional[UUID] = None,
    actor_id: Optional[UUID] = None,
    payload: Optional[dict] = None,
) -> AuditLog:
    """Stage an audit entry; it is committed together with the change it describes."""
    entry = AuditLog(
        actor_id=actor_id,
        action=action,
        entity=entity,
        entity_id=entity_id,
        payload=payload,
    )
    session.add(entry)
    logger.info(f"{action} {entity} {entity_id} by {actor_id}")
    return entry
