"""
Router FastAPI para Pedidos
Projeto: AgendaPro
"""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from agendapro.core.database import get_db
from agendapro.core.deps import Components, Scope
from agendapro.core.exceptions import OrderNotCancellableError
from agendapro.schemas.order import OrderCreate, OrderRead, OrderStatusUpdate

router = APIRouter(
    prefix="/orders",
    tags=["Pedidos"],
)


@router.post(
    "",
    name="create_order",
    summary="Criar pedido",
    description="Cria o pedido com preço congelado por item, baixa o estoque e lança a receita.",
    response_model=OrderRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_order(
    data: OrderCreate,
    scope: Scope,
    components: Components,
    db: AsyncSession = Depends(get_db),
) -> OrderRead:
    order = await components.orders.create_order(db, scope, data)
    await db.commit()
    return OrderRead.model_validate(order)


@router.get(
    "/{order_id}",
    name="get_order",
    summary="Detalhe do pedido",
    response_model=OrderRead,
    status_code=status.HTTP_200_OK,
)
async def get_order(
    order_id: uuid.UUID,
    scope: Scope,
    components: Components,
    db: AsyncSession = Depends(get_db),
) -> OrderRead:
    order = await components.orders.get_order(db, scope, order_id)
    return OrderRead.model_validate(order)


@router.patch(
    "/{order_id}/status",
    name="update_order_status",
    summary="Alterar status do pedido",
    response_model=OrderRead,
    status_code=status.HTTP_200_OK,
)
async def update_order_status(
    order_id: uuid.UUID,
    body: OrderStatusUpdate,
    scope: Scope,
    components: Components,
    db: AsyncSession = Depends(get_db),
) -> OrderRead:
    order = await components.orders.update_order_status(db, scope, order_id, body.status)
    await db.commit()
    return OrderRead.model_validate(order)


@router.post(
    "/{order_id}/cancel",
    name="cancel_order",
    summary="Cancelar pedido",
    description="Devolve o estoque e estorna o lançamento. Pedidos entregues ou já cancelados retornam 409.",
    response_model=OrderRead,
    status_code=status.HTTP_200_OK,
)
async def cancel_order(
    order_id: uuid.UUID,
    scope: Scope,
    components: Components,
    db: AsyncSession = Depends(get_db),
) -> OrderRead:
    order = await components.orders.cancel_order(db, scope, order_id)
    if order is None:
        raise OrderNotCancellableError(order_id)
    await db.commit()
    return OrderRead.model_validate(order)
