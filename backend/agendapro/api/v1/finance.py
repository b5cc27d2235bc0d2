"""
Router FastAPI para o Financeiro
Projeto: AgendaPro

Lançamentos manuais, listagem, resumo por período e categorias padrão.
"""

import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from agendapro.core.database import get_db
from agendapro.core.deps import Components, Scope
from agendapro.core.exceptions import BusinessValidationError
from agendapro.schemas.finance import (
    FinancialSummary,
    TransactionCreate,
    TransactionRead,
    TransactionSource,
    TransactionStatus,
    TransactionType,
)

router = APIRouter(
    prefix="/finance",
    tags=["Financeiro"],
)


@router.post(
    "/income",
    name="create_income",
    summary="Lançar receita",
    response_model=TransactionRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_income(
    data: TransactionCreate,
    scope: Scope,
    components: Components,
    db: AsyncSession = Depends(get_db),
) -> TransactionRead:
    transaction = await components.ledger.create_income(db, scope, data)
    await db.commit()
    return TransactionRead.model_validate(transaction)


@router.post(
    "/expense",
    name="create_expense",
    summary="Lançar despesa",
    response_model=TransactionRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_expense(
    data: TransactionCreate,
    scope: Scope,
    components: Components,
    db: AsyncSession = Depends(get_db),
) -> TransactionRead:
    transaction = await components.ledger.create_expense(db, scope, data)
    await db.commit()
    return TransactionRead.model_validate(transaction)


@router.get(
    "/transactions",
    name="list_transactions",
    summary="Listar lançamentos",
    response_model=list[TransactionRead],
    status_code=status.HTTP_200_OK,
)
async def list_transactions(
    scope: Scope,
    components: Components,
    start_date: Optional[datetime.date] = Query(None, alias="startDate"),
    end_date: Optional[datetime.date] = Query(None, alias="endDate"),
    type_: Optional[TransactionType] = Query(None, alias="type"),
    source: Optional[TransactionSource] = Query(None),
    status_: Optional[TransactionStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
) -> list[TransactionRead]:
    transactions = await components.ledger.list_transactions(
        db, scope, start_date, end_date, type_=type_, source=source, status=status_
    )
    return [TransactionRead.model_validate(t) for t in transactions]


@router.get(
    "/summary",
    name="financial_summary",
    summary="Resumo financeiro",
    description="Totais do período (inclusivo), apenas lançamentos não estornados.",
    response_model=FinancialSummary,
    status_code=status.HTTP_200_OK,
)
async def financial_summary(
    scope: Scope,
    components: Components,
    start_date: datetime.date = Query(..., alias="startDate"),
    end_date: datetime.date = Query(..., alias="endDate"),
    db: AsyncSession = Depends(get_db),
) -> FinancialSummary:
    if end_date < start_date:
        raise BusinessValidationError("endDate deve ser posterior a startDate")
    summary = await components.ledger.get_financial_summary(db, scope, start_date, end_date)
    return FinancialSummary(**summary)


@router.post(
    "/categories/defaults",
    name="ensure_default_categories",
    summary="Criar categorias padrão",
    status_code=status.HTTP_200_OK,
)
async def ensure_default_categories(
    scope: Scope,
    components: Components,
    db: AsyncSession = Depends(get_db),
) -> dict:
    created = await components.ledger.ensure_default_categories(db, scope)
    await db.commit()
    return {"created": [c.name for c in created]}
