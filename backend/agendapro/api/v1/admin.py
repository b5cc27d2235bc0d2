"""
Router FastAPI para operações administrativas
Projeto: AgendaPro

Reparo de agendamentos sem serviço, restrito ao master admin.
"""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from agendapro.core.database import get_db
from agendapro.core.deps import Components, MasterAdmin
from agendapro.core.tenancy import TenantScope
from agendapro.schemas.appointment import AppointmentRead, OrphanFixReport, OrphanFixRequest

router = APIRouter(
    prefix="/admin",
    tags=["Administração"],
)


@router.get(
    "/tenants/{tenant_id}/orphan-appointments",
    name="find_orphan_appointments",
    summary="Agendamentos sem serviço",
    response_model=list[AppointmentRead],
    status_code=status.HTTP_200_OK,
)
async def find_orphans(
    tenant_id: uuid.UUID,
    caller: MasterAdmin,
    components: Components,
    db: AsyncSession = Depends(get_db),
) -> list[AppointmentRead]:
    scope = TenantScope(caller=caller, tenant_id=tenant_id)
    orphans = await components.scheduler.find_orphan_appointments(db, scope)
    return [AppointmentRead.model_validate(a) for a in orphans]


@router.post(
    "/tenants/{tenant_id}/orphan-appointments/fix",
    name="fix_orphan_appointments",
    summary="Reparar agendamentos sem serviço",
    description="Vincula o serviço padrão a cada órfão; falhas individuais são reportadas sem abortar o lote.",
    response_model=OrphanFixReport,
    status_code=status.HTTP_200_OK,
)
async def fix_orphans(
    tenant_id: uuid.UUID,
    body: OrphanFixRequest,
    caller: MasterAdmin,
    components: Components,
    db: AsyncSession = Depends(get_db),
) -> OrphanFixReport:
    scope = TenantScope(caller=caller, tenant_id=tenant_id)
    report = await components.scheduler.fix_orphan_appointments(db, scope, body.default_service_id)
    await db.commit()
    return OrphanFixReport(**report)
