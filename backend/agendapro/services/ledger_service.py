"""
Service Layer para o Financeiro
Projeto: AgendaPro

Lançamentos manuais, lançamentos derivados de agendamentos e pedidos
(idempotentes por origem), estorno por status e resumo por período.

A idempotência é verificada antes da inserção e não há constraint de
unicidade: duas chamadas simultâneas para a mesma origem podem gerar
dois lançamentos, salvo com booking_slot_lock ativo no PostgreSQL.
"""

import datetime
import logging
import uuid
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from agendapro.core.config import Settings
from agendapro.core.exceptions import (
    AlreadyPaidError,
    AppointmentNotFoundError,
    CategoryNotFoundError,
    NotCompletedError,
    OrderNotFoundError,
)
from agendapro.core.locks import acquire_advisory_lock
from agendapro.core.tenancy import TenantScope
from agendapro.models import Appointment, Client, FinanceCategory, FinancialTransaction, Order
from agendapro.schemas.appointment import AppointmentStatus, DiscountType, PaymentRegistration
from agendapro.schemas.finance import (
    TransactionCreate,
    TransactionSource,
    TransactionStatus,
    TransactionType,
)
from agendapro.services.catalog_service import ServiceCatalog
from agendapro.services.common import get_owned

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
NO_PAYMENT_METHOD = "other"
NO_CATEGORY = "Sem categoria"


def quantize_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def apply_discount(
    original: Decimal,
    discount: Optional[Decimal],
    discount_type: Optional[DiscountType],
) -> Decimal:
    """
    Aplica o desconto (percentual ou valor fixo) e limita o resultado em zero.

    Sem tipo informado o desconto é tratado como valor fixo.
    """
    if not discount:
        return quantize_money(original)
    if discount_type == DiscountType.PERCENT:
        reduction = original * Decimal(discount) / Decimal(100)
    else:
        reduction = Decimal(discount)
    return quantize_money(max(original - reduction, Decimal("0")))


class FinancialLedger:
    """
    Livro-caixa do tenant.

    Usage:
        ledger = FinancialLedger(catalog, settings)
        tx = await ledger.create_transaction_from_appointment(db, scope, appointment_id, "pix", amount)
    """

    def __init__(self, catalog: ServiceCatalog, settings: Settings) -> None:
        self.catalog = catalog
        self.settings = settings

    def today(self) -> datetime.date:
        """Data de hoje no fuso horário da empresa."""
        return datetime.datetime.now(ZoneInfo(self.settings.business_timezone)).date()

    # ------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------

    async def _find_posted(
        self,
        db: AsyncSession,
        tenant_id: uuid.UUID,
        source: TransactionSource,
        source_id: uuid.UUID,
    ) -> Optional[FinancialTransaction]:
        result = await db.execute(
            select(FinancialTransaction)
            .where(
                FinancialTransaction.tenant_id == tenant_id,
                FinancialTransaction.source == source.value,
                FinancialTransaction.source_id == source_id,
                FinancialTransaction.status == TransactionStatus.POSTED.value,
            )
            .order_by(FinancialTransaction.created_at.asc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def _category_by_name(
        self,
        db: AsyncSession,
        tenant_id: uuid.UUID,
        name: str,
        type_: TransactionType,
    ) -> Optional[FinanceCategory]:
        result = await db.execute(
            select(FinanceCategory)
            .where(
                FinanceCategory.tenant_id == tenant_id,
                FinanceCategory.name == name,
                FinanceCategory.type == type_.value,
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def _post(
        self,
        db: AsyncSession,
        tenant_id: uuid.UUID,
        type_: TransactionType,
        source: TransactionSource,
        title: str,
        amount: Decimal,
        category: Optional[FinanceCategory] = None,
        source_id: Optional[uuid.UUID] = None,
        description: Optional[str] = None,
        payment_method: Optional[str] = None,
        date: Optional[datetime.date] = None,
    ) -> FinancialTransaction:
        transaction = FinancialTransaction(
            tenant_id=tenant_id,
            type=type_.value,
            source=source.value,
            source_id=source_id,
            category_id=category.id if category else None,
            category_name=category.name if category else None,
            title=title,
            description=description,
            amount=quantize_money(amount),
            payment_method=payment_method,
            date=date or self.today(),
            status=TransactionStatus.POSTED.value,
        )
        db.add(transaction)
        await db.flush()
        logger.info(
            "Lançamento %s (%s/%s) de %s registrado no tenant %s",
            transaction.id, type_.value, source.value, transaction.amount, tenant_id,
        )
        return transaction

    # ------------------------------------------------------------
    # Lançamentos manuais
    # ------------------------------------------------------------

    async def _create_manual(
        self,
        db: AsyncSession,
        scope: TenantScope,
        type_: TransactionType,
        data: TransactionCreate,
    ) -> FinancialTransaction:
        scope.check()
        category = None
        if data.category_id is not None:
            category = await get_owned(db, FinanceCategory, scope.tenant_id, data.category_id)
            if category is None:
                logger.warning(
                    "Categoria %s não encontrada no tenant %s", data.category_id, scope.tenant_id
                )
                raise CategoryNotFoundError(data.category_id)

        return await self._post(
            db,
            scope.tenant_id,
            type_,
            TransactionSource.MANUAL,
            title=data.title,
            amount=data.amount,
            category=category,
            description=data.description,
            payment_method=data.payment_method,
            date=data.date,
        )

    async def create_income(
        self, db: AsyncSession, scope: TenantScope, data: TransactionCreate
    ) -> FinancialTransaction:
        return await self._create_manual(db, scope, TransactionType.INCOME, data)

    async def create_expense(
        self, db: AsyncSession, scope: TenantScope, data: TransactionCreate
    ) -> FinancialTransaction:
        return await self._create_manual(db, scope, TransactionType.EXPENSE, data)

    # ------------------------------------------------------------
    # Lançamentos derivados
    # ------------------------------------------------------------

    async def create_transaction_from_appointment(
        self,
        db: AsyncSession,
        scope: TenantScope,
        appointment_id: uuid.UUID,
        payment_method: Optional[str],
        amount: Decimal,
    ) -> FinancialTransaction:
        """
        Lançamento de receita de um atendimento.

        Idempotente: se já existe um lançamento posted para o agendamento,
        ele é devolvido sem alterações. A data é "hoje", não a do atendimento.
        """
        scope.check()
        await acquire_advisory_lock(
            db, self.settings, "ledger", scope.tenant_id, TransactionSource.APPOINTMENT.value, appointment_id
        )
        existing = await self._find_posted(db, scope.tenant_id, TransactionSource.APPOINTMENT, appointment_id)
        if existing is not None:
            logger.debug("Lançamento do agendamento %s já existe: %s", appointment_id, existing.id)
            return existing

        appointment = await get_owned(db, Appointment, scope.tenant_id, appointment_id)
        if appointment is None:
            raise AppointmentNotFoundError(appointment_id)

        client = await get_owned(db, Client, scope.tenant_id, appointment.client_id)
        title = f"Atendimento - {client.name}" if client else "Atendimento"
        category = await self._category_by_name(
            db, scope.tenant_id, self.settings.services_finance_category, TransactionType.INCOME
        )

        return await self._post(
            db,
            scope.tenant_id,
            TransactionType.INCOME,
            TransactionSource.APPOINTMENT,
            title=title,
            amount=amount,
            category=category,
            source_id=appointment_id,
            description=f"Agendamento de {appointment.date.isoformat()} às {appointment.time}",
            payment_method=payment_method,
        )

    async def create_transaction_from_order(
        self,
        db: AsyncSession,
        scope: TenantScope,
        order_id: uuid.UUID,
        payment_method: Optional[str],
        amount: Decimal,
    ) -> FinancialTransaction:
        """Lançamento de receita de um pedido (idempotente, como o de agendamento)."""
        scope.check()
        await acquire_advisory_lock(
            db, self.settings, "ledger", scope.tenant_id, TransactionSource.ORDER.value, order_id
        )
        existing = await self._find_posted(db, scope.tenant_id, TransactionSource.ORDER, order_id)
        if existing is not None:
            return existing

        order = await get_owned(db, Order, scope.tenant_id, order_id)
        if order is None:
            raise OrderNotFoundError(order_id)

        category = await self._category_by_name(
            db, scope.tenant_id, self.settings.products_finance_category, TransactionType.INCOME
        )
        return await self._post(
            db,
            scope.tenant_id,
            TransactionType.INCOME,
            TransactionSource.ORDER,
            title=f"Pedido #{order.order_number}",
            amount=amount,
            category=category,
            source_id=order_id,
            payment_method=payment_method,
        )

    async def void_transaction_by_source(
        self,
        db: AsyncSession,
        scope: TenantScope,
        source: TransactionSource,
        source_id: uuid.UUID,
    ) -> Optional[FinancialTransaction]:
        """
        Estorna o lançamento posted da origem (status voided, a linha permanece).

        Returns:
            O lançamento estornado, ou None se não havia lançamento posted
        """
        scope.check()
        transaction = await self._find_posted(db, scope.tenant_id, source, source_id)
        if transaction is None:
            return None
        transaction.status = TransactionStatus.VOIDED.value
        await db.flush()
        logger.info("Lançamento %s estornado (%s %s)", transaction.id, source.value, source_id)
        return transaction

    # ------------------------------------------------------------
    # Pagamento de agendamento
    # ------------------------------------------------------------

    async def register_appointment_payment(
        self,
        db: AsyncSession,
        scope: TenantScope,
        appointment_id: uuid.UUID,
        payment: PaymentRegistration,
    ) -> Appointment:
        """
        Registra o pagamento (uma única vez) e lança a receita.

        O total original é a soma do preço efetivo de cada serviço na data
        do próprio agendamento.

        Raises:
            AppointmentNotFoundError: Agendamento fora do tenant
            AlreadyPaidError: Pagamento já registrado
            NotCompletedError: Agendamento não concluído
        """
        scope.check()
        appointment = await get_owned(db, Appointment, scope.tenant_id, appointment_id, for_update=True)
        if appointment is None:
            logger.warning("Agendamento %s não encontrado no tenant %s", appointment_id, scope.tenant_id)
            raise AppointmentNotFoundError(appointment_id)
        if appointment.payment_registered_at is not None:
            logger.warning("Pagamento do agendamento %s já registrado", appointment_id)
            raise AlreadyPaidError(appointment_id)
        if appointment.status != AppointmentStatus.COMPLETED.value:
            logger.warning(
                "Pagamento recusado: agendamento %s com status %s", appointment_id, appointment.status
            )
            raise NotCompletedError(appointment_id, appointment.status)

        services = await self.catalog.get_services(db, scope.tenant_id, appointment.service_ids)
        original_total = sum(
            (
                self.catalog.effective_value(services[sid], appointment.date)
                for sid in appointment.service_ids
                if sid in services
            ),
            Decimal("0"),
        )

        discount_type = payment.discount_type
        if payment.discount and discount_type is None:
            discount_type = DiscountType.AMOUNT
        final_amount = apply_discount(original_total, payment.discount, discount_type)

        appointment.payment_method = payment.payment_method
        appointment.payment_amount = final_amount
        appointment.payment_discount = payment.discount if payment.discount else None
        appointment.payment_discount_type = discount_type.value if payment.discount else None
        appointment.payment_registered_at = datetime.datetime.now(datetime.timezone.utc)
        await db.flush()

        logger.info(
            "Pagamento do agendamento %s registrado: original %s, final %s (%s)",
            appointment.id, original_total, final_amount, payment.payment_method,
        )

        await self.create_transaction_from_appointment(
            db, scope, appointment.id, payment.payment_method, final_amount
        )
        return appointment

    # ------------------------------------------------------------
    # Consultas
    # ------------------------------------------------------------

    async def list_transactions(
        self,
        db: AsyncSession,
        scope: TenantScope,
        start_date: Optional[datetime.date] = None,
        end_date: Optional[datetime.date] = None,
        type_: Optional[TransactionType] = None,
        source: Optional[TransactionSource] = None,
        status: Optional[TransactionStatus] = None,
    ) -> list[FinancialTransaction]:
        scope.check()
        query = select(FinancialTransaction).where(FinancialTransaction.tenant_id == scope.tenant_id)
        if start_date is not None:
            query = query.where(FinancialTransaction.date >= start_date)
        if end_date is not None:
            query = query.where(FinancialTransaction.date <= end_date)
        if type_ is not None:
            query = query.where(FinancialTransaction.type == type_.value)
        if source is not None:
            query = query.where(FinancialTransaction.source == source.value)
        if status is not None:
            query = query.where(FinancialTransaction.status == status.value)
        query = query.order_by(FinancialTransaction.date.desc(), FinancialTransaction.created_at.desc())
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_financial_summary(
        self,
        db: AsyncSession,
        scope: TenantScope,
        start_date: datetime.date,
        end_date: datetime.date,
    ) -> dict:
        """
        Totais do período [start_date, end_date], apenas lançamentos posted.

        Returns:
            Dict com totalIncome, totalExpense, balance,
            incomeByPaymentMethod e expenseByCategory (chaves snake_case)
        """
        transactions = await self.list_transactions(
            db, scope, start_date, end_date, status=TransactionStatus.POSTED
        )

        total_income = Decimal("0")
        total_expense = Decimal("0")
        income_by_method: dict[str, Decimal] = {}
        expense_by_category: dict[str, Decimal] = {}

        for tx in transactions:
            amount = Decimal(tx.amount)
            if tx.type == TransactionType.INCOME.value:
                total_income += amount
                key = tx.payment_method or NO_PAYMENT_METHOD
                income_by_method[key] = income_by_method.get(key, Decimal("0")) + amount
            else:
                total_expense += amount
                key = tx.category_name or NO_CATEGORY
                expense_by_category[key] = expense_by_category.get(key, Decimal("0")) + amount

        return {
            "total_income": quantize_money(total_income),
            "total_expense": quantize_money(total_expense),
            "balance": quantize_money(total_income - total_expense),
            "income_by_payment_method": {k: quantize_money(v) for k, v in income_by_method.items()},
            "expense_by_category": {k: quantize_money(v) for k, v in expense_by_category.items()},
        }

    async def ensure_default_categories(
        self,
        db: AsyncSession,
        scope: TenantScope,
    ) -> list[FinanceCategory]:
        """Cria as categorias padrão que ainda não existem no tenant."""
        scope.check()
        defaults = [
            (self.settings.services_finance_category, TransactionType.INCOME),
            (self.settings.products_finance_category, TransactionType.INCOME),
            (self.settings.expenses_finance_category, TransactionType.EXPENSE),
        ]
        created = []
        for name, type_ in defaults:
            if await self._category_by_name(db, scope.tenant_id, name, type_) is None:
                category = FinanceCategory(
                    tenant_id=scope.tenant_id, name=name, type=type_.value, is_default=True
                )
                db.add(category)
                created.append(category)
        if created:
            await db.flush()
            logger.info(
                "Categorias padrão criadas no tenant %s: %s",
                scope.tenant_id, [c.name for c in created],
            )
        return created
