"""
Service Layer para Pedidos
Projeto: AgendaPro

Criação de pedidos com preço congelado por item e baixa de estoque,
cancelamento com devolução do estoque e estorno do lançamento.
"""

import logging
import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from agendapro.core.config import Settings
from agendapro.core.exceptions import (
    ClientNotFoundError,
    InsufficientStockError,
    InvalidStatusTransitionError,
    NotFoundError,
    OrderNotCancellableError,
    OrderNotFoundError,
    ProductInactiveError,
    ProductNotFoundError,
)
from agendapro.core.locks import acquire_advisory_lock
from agendapro.core.tenancy import TenantScope
from agendapro.models import Client, ClientAddress, Order, OrderItem, Product
from agendapro.schemas.finance import TransactionSource
from agendapro.schemas.order import ORDER_TRANSITIONS, OrderCreate, OrderStatus
from agendapro.services.common import get_owned
from agendapro.services.ledger_service import FinancialLedger

logger = logging.getLogger(__name__)

# Estados a partir dos quais o pedido não pode mais ser cancelado
NOT_CANCELLABLE = {OrderStatus.CANCELLED.value, OrderStatus.DELIVERED.value}


class OrderFulfillment:
    """
    Pedidos de produtos do tenant.

    Estoque é verificado e baixado na mesma transação do pedido; sem
    booking_slot_lock a verificação é best-effort sob concorrência
    (no PostgreSQL os produtos são lidos com SELECT ... FOR UPDATE).
    """

    def __init__(self, ledger: FinancialLedger, settings: Settings) -> None:
        self.ledger = ledger
        self.settings = settings

    async def _load_products(
        self,
        db: AsyncSession,
        tenant_id: uuid.UUID,
        product_ids: set[uuid.UUID],
    ) -> dict[uuid.UUID, Product]:
        result = await db.execute(
            select(Product)
            .where(Product.tenant_id == tenant_id, Product.id.in_(product_ids))
            .with_for_update()
        )
        return {p.id: p for p in result.scalars().all()}

    async def _next_order_number(self, db: AsyncSession, tenant_id: uuid.UUID) -> int:
        result = await db.execute(
            select(func.max(Order.order_number)).where(Order.tenant_id == tenant_id)
        )
        return (result.scalar() or 0) + 1

    async def _delivery_fields(
        self,
        db: AsyncSession,
        tenant_id: uuid.UUID,
        data: OrderCreate,
    ) -> dict:
        """Endereço salvo do cliente tem prioridade sobre o endereço livre."""
        if data.client_address_id is not None:
            address = await get_owned(db, ClientAddress, tenant_id, data.client_address_id)
            if address is None or address.client_id != data.client_id:
                logger.warning(
                    "Endereço %s não encontrado para o cliente %s", data.client_address_id, data.client_id
                )
                raise NotFoundError(
                    f"Endereço {data.client_address_id} não encontrado",
                    error_code="ADDRESS_NOT_FOUND",
                )
            source = address
        elif data.delivery_address is not None:
            source = data.delivery_address
        else:
            return {}

        return {
            "delivery_street": source.street,
            "delivery_number": source.number,
            "delivery_complement": source.complement,
            "delivery_neighborhood": source.neighborhood,
            "delivery_city": source.city,
            "delivery_zip_code": source.zip_code,
            "delivery_reference": source.reference,
        }

    async def get_order(
        self,
        db: AsyncSession,
        scope: TenantScope,
        order_id: uuid.UUID,
        for_update: bool = False,
    ) -> Order:
        scope.check()
        order = await get_owned(db, Order, scope.tenant_id, order_id, for_update)
        if order is None:
            logger.warning("Pedido %s não encontrado no tenant %s", order_id, scope.tenant_id)
            raise OrderNotFoundError(order_id)
        return order

    async def create_order(
        self,
        db: AsyncSession,
        scope: TenantScope,
        data: OrderCreate,
    ) -> Order:
        """
        Cria o pedido, baixa o estoque e lança a receita.

        Raises:
            ClientNotFoundError: Cliente fora do tenant
            ProductNotFoundError / ProductInactiveError: Produto indisponível
            InsufficientStockError: Estoque controlado insuficiente
        """
        scope.check()
        if await get_owned(db, Client, scope.tenant_id, data.client_id) is None:
            logger.warning("Cliente %s não encontrado no tenant %s", data.client_id, scope.tenant_id)
            raise ClientNotFoundError(data.client_id)

        delivery = await self._delivery_fields(db, scope.tenant_id, data)
        await acquire_advisory_lock(db, self.settings, "order", scope.tenant_id)

        requested: dict[uuid.UUID, int] = {}
        for item in data.items:
            requested[item.product_id] = requested.get(item.product_id, 0) + item.quantity

        products = await self._load_products(db, scope.tenant_id, set(requested))
        for product_id, quantity in requested.items():
            product = products.get(product_id)
            if product is None:
                logger.warning("Produto %s não encontrado no tenant %s", product_id, scope.tenant_id)
                raise ProductNotFoundError(product_id)
            if not product.is_active:
                logger.warning("Produto %s inativo", product_id)
                raise ProductInactiveError(product_id, product.name)
            if product.manage_stock and (product.quantity or 0) < quantity:
                logger.warning(
                    "Estoque insuficiente para %s: disponível %s, solicitado %s",
                    product_id, product.quantity, quantity,
                )
                raise InsufficientStockError(product_id, product.name, product.quantity or 0, quantity)

        items = []
        total = Decimal("0")
        for item in data.items:
            unit_price = products[item.product_id].current_price
            total += unit_price * item.quantity
            items.append(
                OrderItem(product_id=item.product_id, quantity=item.quantity, unit_price=unit_price)
            )

        order = Order(
            tenant_id=scope.tenant_id,
            client_id=data.client_id,
            client_address_id=data.client_address_id,
            order_number=await self._next_order_number(db, scope.tenant_id),
            status=OrderStatus.PENDING.value,
            total=total,
            notes=data.notes,
            payment_method=data.payment_method,
            change_for=data.change_for,
            items=items,
            **delivery,
        )
        db.add(order)

        for product_id, quantity in requested.items():
            product = products[product_id]
            if product.manage_stock:
                product.quantity = max((product.quantity or 0) - quantity, 0)

        await db.flush()
        await db.refresh(order)
        logger.info(
            "Pedido #%s (%s) criado no tenant %s: total %s",
            order.order_number, order.id, scope.tenant_id, total,
        )

        await self.ledger.create_transaction_from_order(
            db, scope, order.id, data.payment_method, total
        )
        return order

    async def cancel_order(
        self,
        db: AsyncSession,
        scope: TenantScope,
        order_id: uuid.UUID,
    ) -> Optional[Order]:
        """
        Cancela o pedido: devolve o estoque e estorna o lançamento.

        Returns:
            O pedido cancelado, ou None se já estava cancelado ou entregue
        """
        order = await self.get_order(db, scope, order_id, for_update=True)
        if order.status in NOT_CANCELLABLE:
            logger.warning("Pedido %s não cancelável (status %s)", order.id, order.status)
            return None

        product_ids = {item.product_id for item in order.items}
        products = await self._load_products(db, scope.tenant_id, product_ids) if product_ids else {}
        for item in order.items:
            product = products.get(item.product_id)
            if product is not None and product.manage_stock:
                product.quantity = (product.quantity or 0) + item.quantity

        await self.ledger.void_transaction_by_source(db, scope, TransactionSource.ORDER, order.id)
        order.status = OrderStatus.CANCELLED.value
        await db.flush()

        logger.info("Pedido #%s (%s) cancelado", order.order_number, order.id)
        return order

    async def update_order_status(
        self,
        db: AsyncSession,
        scope: TenantScope,
        order_id: uuid.UUID,
        status: OrderStatus,
    ) -> Order:
        """
        Avança o pedido pending → preparing → ready → delivered.

        Um pedido de cancelamento é delegado a cancel_order.
        """
        if status == OrderStatus.CANCELLED:
            cancelled = await self.cancel_order(db, scope, order_id)
            if cancelled is None:
                raise OrderNotCancellableError(order_id)
            return cancelled

        order = await self.get_order(db, scope, order_id)
        if order.status == status.value:
            return order
        allowed = ORDER_TRANSITIONS.get(OrderStatus(order.status), [])
        if status not in allowed:
            raise InvalidStatusTransitionError(order.status, status.value)

        previous = order.status
        order.status = status.value
        await db.flush()
        logger.info("Pedido %s: status %s → %s", order.id, previous, status.value)
        return order
