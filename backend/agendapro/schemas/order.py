"""
Schemas Pydantic para Pedidos
Projeto: AgendaPro
"""

import datetime
import uuid
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import Field

from agendapro.schemas.common import CamelModel


class OrderStatus(str, Enum):
    """Status do pedido."""
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Progressão linear; o cancelamento é tratado à parte por cancel_order
ORDER_TRANSITIONS: dict[OrderStatus, list[OrderStatus]] = {
    OrderStatus.PENDING: [OrderStatus.PREPARING],
    OrderStatus.PREPARING: [OrderStatus.READY],
    OrderStatus.READY: [OrderStatus.DELIVERED],
    OrderStatus.DELIVERED: [],
    OrderStatus.CANCELLED: [],
}


class OrderItemCreate(CamelModel):
    product_id: uuid.UUID
    quantity: int = Field(..., gt=0)


class DeliveryAddress(CamelModel):
    """Endereço livre informado no pedido."""

    street: str = Field(..., min_length=1, max_length=200)
    number: str = Field(..., min_length=1, max_length=20)
    complement: Optional[str] = Field(None, max_length=100)
    neighborhood: str = Field(..., min_length=1, max_length=100)
    city: str = Field(..., min_length=1, max_length=100)
    zip_code: Optional[str] = Field(None, max_length=10)
    reference: Optional[str] = Field(None, max_length=200)


class OrderCreate(CamelModel):
    client_id: uuid.UUID
    items: list[OrderItemCreate] = Field(..., min_length=1)
    payment_method: str = Field(..., min_length=1, max_length=30)
    notes: Optional[str] = None
    delivery_address: Optional[DeliveryAddress] = None
    client_address_id: Optional[uuid.UUID] = None
    change_for: Optional[Decimal] = Field(None, ge=0)


class OrderStatusUpdate(CamelModel):
    status: OrderStatus


class OrderItemRead(CamelModel):
    id: uuid.UUID
    product_id: uuid.UUID
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class OrderRead(CamelModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    client_id: uuid.UUID
    order_number: int
    status: OrderStatus
    total: Decimal
    payment_method: str
    change_for: Optional[Decimal] = None
    notes: Optional[str] = None
    client_address_id: Optional[uuid.UUID] = None
    delivery_street: Optional[str] = None
    delivery_number: Optional[str] = None
    delivery_complement: Optional[str] = None
    delivery_neighborhood: Optional[str] = None
    delivery_city: Optional[str] = None
    delivery_zip_code: Optional[str] = None
    delivery_reference: Optional[str] = None
    created_at: datetime.datetime
    items: list[OrderItemRead] = Field(default_factory=list)
