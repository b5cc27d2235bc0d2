"""
Modelos SQLAlchemy para o Financeiro
Projeto: AgendaPro

Contém:
- FinanceCategory: categorias de receita/despesa do tenant
- FinancialTransaction: lançamentos (manuais ou derivados)
"""

import datetime
import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, Date, ForeignKey, Index, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from agendapro.models import Base
from agendapro.models.mixins import TenantMixin, TimestampMixin, UUIDMixin


class FinanceCategory(Base, UUIDMixin, TenantMixin, TimestampMixin):
    """Categoria financeira (type: income | expense)."""

    __tablename__ = "finance_categories"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[str] = mapped_column(String(10), nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"FinanceCategory(name={self.name!r}, type={self.type})"


class FinancialTransaction(Base, UUIDMixin, TenantMixin, TimestampMixin):
    """
    Lançamento financeiro.

    Attributes:
        type: income | expense
        source: manual | appointment | order
        source_id: ID do agendamento/pedido de origem
        category_name: Nome da categoria congelado na criação
        status: posted | voided (estorno nunca apaga a linha)

    Não há constraint de unicidade em (tenant_id, source, source_id):
    a idempotência é verificada antes da inserção.
    """

    __tablename__ = "financial_transactions"
    __table_args__ = (
        Index("ix_fin_tx_tenant_source", "tenant_id", "source", "source_id"),
        Index("ix_fin_tx_tenant_date", "tenant_id", "date"),
    )

    type: Mapped[str] = mapped_column(String(10), nullable=False)
    source: Mapped[str] = mapped_column(String(20), nullable=False, default="manual")
    source_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    category_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("finance_categories.id", ondelete="SET NULL"), nullable=True
    )
    category_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    payment_method: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(10), nullable=False, default="posted")

    def __repr__(self) -> str:
        return (
            f"FinancialTransaction(id={self.id}, type={self.type}, "
            f"source={self.source}, amount={self.amount}, status={self.status})"
        )
