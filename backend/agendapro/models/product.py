"""
Modelo SQLAlchemy para Produtos
Projeto: AgendaPro
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from agendapro.models import Base
from agendapro.models.mixins import TenantMixin, TimestampMixin, UUIDMixin


class Product(Base, UUIDMixin, TenantMixin, TimestampMixin):
    """
    Produto vendido nos pedidos.

    Attributes:
        price: Preço de venda
        manage_stock: Se True, quantity é controlada e decrementada
        quantity: Estoque atual (None quando não controlado)
        is_active: Produto disponível para venda
        is_on_sale / sale_price: Preço de oferta

    Properties:
        current_price: Preço efetivo no momento da venda
    """

    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("quantity IS NULL OR quantity >= 0", name="ck_products_quantity_non_negative"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    manage_stock: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    quantity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_on_sale: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    sale_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)

    @property
    def current_price(self) -> Decimal:
        if self.is_on_sale and self.sale_price is not None:
            return self.sale_price
        return self.price

    def __repr__(self) -> str:
        return f"Product(id={self.id}, name={self.name!r}, quantity={self.quantity})"
