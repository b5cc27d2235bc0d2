"""
Schemas Pydantic
Projeto: AgendaPro

Validação e serialização dos dados trocados com a API (camelCase no JSON).
"""

from agendapro.schemas.common import CamelModel, MoneyNumber
from agendapro.schemas.appointment import (
    APPOINTMENT_TRANSITIONS,
    AppointmentCreate,
    AppointmentRead,
    AppointmentStatus,
    AppointmentStatusUpdate,
    AppointmentUpdate,
    BookedSlot,
    BusinessHoursCreate,
    BusinessHoursRead,
    BusinessHoursWindow,
    DayAvailability,
    DiscountType,
    OrphanFixReport,
    OrphanFixRequest,
    PaymentRegistration,
)
from agendapro.schemas.catalog import EffectivePrice, ServiceCreate, ServiceRead
from agendapro.schemas.order import (
    ORDER_TRANSITIONS,
    DeliveryAddress,
    OrderCreate,
    OrderItemCreate,
    OrderItemRead,
    OrderRead,
    OrderStatus,
    OrderStatusUpdate,
)
from agendapro.schemas.finance import (
    FinancialSummary,
    TransactionCreate,
    TransactionRead,
    TransactionSource,
    TransactionStatus,
    TransactionType,
)

__all__ = [
    "CamelModel",
    "MoneyNumber",
    "APPOINTMENT_TRANSITIONS",
    "AppointmentCreate",
    "AppointmentRead",
    "AppointmentStatus",
    "AppointmentStatusUpdate",
    "AppointmentUpdate",
    "BookedSlot",
    "BusinessHoursCreate",
    "BusinessHoursRead",
    "BusinessHoursWindow",
    "DayAvailability",
    "DiscountType",
    "OrphanFixReport",
    "OrphanFixRequest",
    "PaymentRegistration",
    "EffectivePrice",
    "ServiceCreate",
    "ServiceRead",
    "ORDER_TRANSITIONS",
    "DeliveryAddress",
    "OrderCreate",
    "OrderItemCreate",
    "OrderItemRead",
    "OrderRead",
    "OrderStatus",
    "OrderStatusUpdate",
    "FinancialSummary",
    "TransactionCreate",
    "TransactionRead",
    "TransactionSource",
    "TransactionStatus",
    "TransactionType",
]
