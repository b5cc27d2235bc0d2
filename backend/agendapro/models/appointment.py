"""
Modelos SQLAlchemy para Agendamentos
Projeto: AgendaPro

Contém:
- Appointment: horário reservado de um cliente
- AppointmentService: ligação N:N agendamento-serviço
"""

from __future__ import annotations

import datetime
import uuid
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agendapro.models import Base
from agendapro.models.mixins import TenantMixin, TimestampMixin, UUIDMixin


class Appointment(Base, UUIDMixin, TenantMixin, TimestampMixin):
    """
    Agendamento.

    Attributes:
        client_id: Cliente atendido
        professional_id: Profissional (opcional)
        date: Data do atendimento
        time: Horário de início HH:MM
        duration: Duração total em minutos (soma dos serviços)
        status: scheduled | completed | cancelled
        payment_*: Dados do pagamento, gravados uma única vez

    Relationships:
        service_links: Serviços vinculados
    """

    __tablename__ = "appointments"
    __table_args__ = (
        Index("ix_appointments_tenant_date", "tenant_id", "date"),
    )

    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    professional_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("professionals.id", ondelete="SET NULL"), nullable=True
    )
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    time: Mapped[str] = mapped_column(String(5), nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="scheduled")
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    payment_method: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    payment_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    payment_discount: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    payment_discount_type: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    payment_registered_at: Mapped[Optional[datetime.datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    service_links: Mapped[List["AppointmentService"]] = relationship(
        "AppointmentService",
        back_populates="appointment",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def service_ids(self) -> list[uuid.UUID]:
        return [link.service_id for link in self.service_links]

    def __repr__(self) -> str:
        return f"Appointment(id={self.id}, date={self.date}, time={self.time}, status={self.status})"


class AppointmentService(Base, UUIDMixin):
    """Serviço vinculado a um agendamento."""

    __tablename__ = "appointment_services"

    appointment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("appointments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    service_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True
    )

    appointment: Mapped["Appointment"] = relationship("Appointment", back_populates="service_links")
