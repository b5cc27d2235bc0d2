"""
Helpers comuns da camada de serviços
Projeto: AgendaPro
"""

import uuid
from typing import Optional, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


async def get_owned(
    db: AsyncSession,
    model: type[T],
    tenant_id: uuid.UUID,
    obj_id: uuid.UUID,
    for_update: bool = False,
) -> Optional[T]:
    """
    Carrega um registro pelo ID somente se pertencer ao tenant.

    Registros de outro tenant são tratados como inexistentes.
    """
    query = select(model).where(model.id == obj_id, model.tenant_id == tenant_id)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    return result.scalar_one_or_none()
