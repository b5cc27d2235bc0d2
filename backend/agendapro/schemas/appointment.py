"""
Schemas Pydantic para Agendamentos
Projeto: AgendaPro

Contém os schemas de criação, atualização parcial, leitura,
mudança de status, registro de pagamento e reparo de órfãos.
"""

import datetime
import uuid
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator, model_validator

from agendapro.schemas.common import CamelModel

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class AppointmentStatus(str, Enum):
    """Status do agendamento."""
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Transições permitidas: completed e cancelled são terminais
APPOINTMENT_TRANSITIONS: dict[AppointmentStatus, list[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: [AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED],
    AppointmentStatus.COMPLETED: [],
    AppointmentStatus.CANCELLED: [],
}


class DiscountType(str, Enum):
    AMOUNT = "amount"
    PERCENT = "percent"


class AppointmentCreate(CamelModel):
    """Corpo da criação de um agendamento."""

    client_id: uuid.UUID
    service_ids: list[uuid.UUID] = Field(..., description="Serviços do atendimento (pelo menos um)")
    date: datetime.date
    time: str = Field(..., pattern=TIME_PATTERN, description="Horário de início HH:MM")
    professional_id: Optional[uuid.UUID] = None
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    notes: Optional[str] = None


class AppointmentUpdate(CamelModel):
    """
    Atualização parcial: apenas os campos enviados são persistidos.

    Um serviceIds vazio é rejeitado pela regra de negócio, não aqui,
    para devolver o código AT_LEAST_ONE_SERVICE_REQUIRED.
    """

    client_id: Optional[uuid.UUID] = None
    service_ids: Optional[list[uuid.UUID]] = None
    date: Optional[datetime.date] = None
    time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    professional_id: Optional[uuid.UUID] = None
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = None


class AppointmentStatusUpdate(CamelModel):
    status: AppointmentStatus


class AppointmentRead(CamelModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    client_id: uuid.UUID
    professional_id: Optional[uuid.UUID] = None
    service_ids: list[uuid.UUID] = Field(default_factory=list)
    date: datetime.date
    time: str
    duration: int
    status: AppointmentStatus
    notes: Optional[str] = None
    payment_method: Optional[str] = None
    payment_amount: Optional[Decimal] = None
    payment_discount: Optional[Decimal] = None
    payment_discount_type: Optional[DiscountType] = None
    payment_registered_at: Optional[datetime.datetime] = None


class PaymentRegistration(CamelModel):
    """Registro de pagamento de um agendamento concluído."""

    payment_method: str = Field(..., min_length=1, max_length=30)
    discount: Optional[Decimal] = Field(None, ge=0)
    discount_type: Optional[DiscountType] = None

    @field_validator("payment_method")
    @classmethod
    def strip_method(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Forma de pagamento obrigatória")
        return v


class OrphanFixRequest(CamelModel):
    default_service_id: uuid.UUID


class OrphanFixReport(CamelModel):
    fixed: int
    errors: list[str] = Field(default_factory=list)


# ------------------------------------------------------------
# Horários de funcionamento e disponibilidade
# ------------------------------------------------------------


class BusinessHoursCreate(CamelModel):
    """Janela de expediente; dayOfWeek 0 = domingo ... 6 = sábado."""

    day_of_week: int = Field(..., ge=0, le=6)
    start_time: str = Field(..., pattern=TIME_PATTERN)
    end_time: str = Field(..., pattern=TIME_PATTERN)
    active: bool = True

    @model_validator(mode="after")
    def validate_window(self) -> "BusinessHoursCreate":
        if self.end_time <= self.start_time:
            raise ValueError("O horário final deve ser posterior ao inicial")
        return self


class BusinessHoursRead(CamelModel):
    id: uuid.UUID
    day_of_week: int
    start_time: str
    end_time: str
    active: bool


class BusinessHoursWindow(CamelModel):
    start_time: str
    end_time: str


class BookedSlot(CamelModel):
    """Agendamento existente com a duração calculada pelos serviços."""

    id: uuid.UUID
    time: str
    duration: int
    client_id: uuid.UUID
    service_ids: list[uuid.UUID] = Field(default_factory=list)
    status: AppointmentStatus


class DayAvailability(CamelModel):
    date: datetime.date
    day_of_week: int
    business_hours: list[BusinessHoursWindow]
    appointments: list[BookedSlot] = Field(default_factory=list)
