"""
Schemas Pydantic para o Financeiro
Projeto: AgendaPro
"""

import datetime
import uuid
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import Field

from agendapro.schemas.common import CamelModel, MoneyNumber


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class TransactionSource(str, Enum):
    MANUAL = "manual"
    APPOINTMENT = "appointment"
    ORDER = "order"


class TransactionStatus(str, Enum):
    POSTED = "posted"
    VOIDED = "voided"


class TransactionCreate(CamelModel):
    """Lançamento manual (receita ou despesa)."""

    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    category_id: Optional[uuid.UUID] = None
    payment_method: Optional[str] = Field(None, max_length=30)
    date: Optional[datetime.date] = Field(None, description="Padrão: hoje no fuso da empresa")


class TransactionRead(CamelModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    type: TransactionType
    source: TransactionSource
    source_id: Optional[uuid.UUID] = None
    category_id: Optional[uuid.UUID] = None
    category_name: Optional[str] = None
    title: str
    description: Optional[str] = None
    amount: Decimal
    payment_method: Optional[str] = None
    date: datetime.date
    status: TransactionStatus


class FinancialSummary(CamelModel):
    """Totais do período; os valores saem como números no JSON."""

    total_income: MoneyNumber
    total_expense: MoneyNumber
    balance: MoneyNumber
    income_by_payment_method: dict[str, MoneyNumber] = Field(default_factory=dict)
    expense_by_category: dict[str, MoneyNumber] = Field(default_factory=dict)
