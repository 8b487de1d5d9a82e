from enum import Enum
from typing import Dict, FrozenSet
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.db.models.enums import allowed_sources


async def apply_transition(
    session: AsyncSession,
    model,
    entity_id: UUID,
    table: Dict[Enum, FrozenSet[Enum]],
    target: Enum,
    **values,
) -> bool:
    """
    Move ``model`` row ``entity_id`` to ``target`` with one conditional UPDATE.

    The row is only touched while its status is one of the legal sources for
    ``target``, so of two racing transitions exactly one matches a row.
    Returns False when nothing was updated (missing row or illegal state).
    """
    stmt = (
        update(model)
        .where(model.id == entity_id, model.status.in_(list(allowed_sources(table, target))))
        .values(status=target, **values)
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    return result.rowcount == 1
