"""
Modelos SQLAlchemy para Pedidos
Projeto: AgendaPro

Contém:
- Order: pedido de produtos de um cliente
- OrderItem: item com preço congelado no momento do pedido
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import ForeignKey, Index, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agendapro.models import Base
from agendapro.models.mixins import TenantMixin, TimestampMixin, UUIDMixin


class Order(Base, UUIDMixin, TenantMixin, TimestampMixin):
    """
    Pedido.

    Ciclo de vida: pending → preparing → ready → delivered;
    cancelled a partir de qualquer estado não terminal.
    """

    __tablename__ = "orders"
    __table_args__ = (
        Index("ix_orders_tenant_number", "tenant_id", "order_number"),
    )

    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    client_address_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("client_addresses.id", ondelete="SET NULL"), nullable=True
    )
    order_number: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    total: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    payment_method: Mapped[str] = mapped_column(String(30), nullable=False)
    change_for: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)

    # Endereço de entrega copiado no momento do pedido
    delivery_street: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    delivery_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    delivery_complement: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    delivery_neighborhood: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    delivery_city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    delivery_zip_code: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    delivery_reference: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    items: Mapped[List["OrderItem"]] = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"Order(id={self.id}, number={self.order_number}, status={self.status})"


class OrderItem(Base, UUIDMixin):
    """Item do pedido; unit_price não acompanha alterações posteriores do produto."""

    __tablename__ = "order_items"

    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("products.id", ondelete="CASCADE"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    order: Mapped["Order"] = relationship("Order", back_populates="items")

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity
