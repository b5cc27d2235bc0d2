"""
Router FastAPI para Horários de Funcionamento
Projeto: AgendaPro
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from agendapro.core.database import get_db
from agendapro.core.deps import Components, Scope
from agendapro.schemas.appointment import BusinessHoursCreate, BusinessHoursRead

router = APIRouter(
    prefix="/business-hours",
    tags=["Expediente"],
)


@router.get(
    "",
    name="list_business_hours",
    summary="Listar horários de funcionamento",
    response_model=list[BusinessHoursRead],
    status_code=status.HTTP_200_OK,
)
async def list_business_hours(
    scope: Scope,
    components: Components,
    db: AsyncSession = Depends(get_db),
) -> list[BusinessHoursRead]:
    windows = await components.scheduler.list_business_hours(db, scope)
    return [BusinessHoursRead.model_validate(w) for w in windows]


@router.post(
    "",
    name="add_business_hours",
    summary="Cadastrar janela de expediente",
    response_model=BusinessHoursRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_business_hours(
    data: BusinessHoursCreate,
    scope: Scope,
    components: Components,
    db: AsyncSession = Depends(get_db),
) -> BusinessHoursRead:
    window = await components.scheduler.add_business_hours(db, scope, data)
    await db.commit()
    return BusinessHoursRead.model_validate(window)
