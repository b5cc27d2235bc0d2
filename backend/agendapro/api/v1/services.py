"""
Router FastAPI para o Catálogo de Serviços
Projeto: AgendaPro
"""

import datetime
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from agendapro.core.database import get_db
from agendapro.core.deps import Components, Scope
from agendapro.schemas.catalog import EffectivePrice

router = APIRouter(
    prefix="/services",
    tags=["Serviços"],
)


@router.get(
    "/{service_id}/effective-price",
    name="service_effective_price",
    summary="Preço efetivo na data",
    description="Preço do serviço na data informada, considerando a promoção vigente.",
    response_model=EffectivePrice,
    status_code=status.HTTP_200_OK,
)
async def effective_price(
    service_id: uuid.UUID,
    scope: Scope,
    components: Components,
    date: datetime.date = Query(..., description="Data do atendimento (YYYY-MM-DD)"),
    db: AsyncSession = Depends(get_db),
) -> EffectivePrice:
    catalog = components.catalog
    service = await catalog.get_service(db, scope, service_id)
    return EffectivePrice(
        service_id=service.id,
        date=date,
        value=service.value,
        effective_value=catalog.effective_value(service, date),
        in_promotion=catalog.is_in_promotion(service, date),
    )
