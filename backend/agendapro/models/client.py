"""
Modelos SQLAlchemy para Clientes e Endereços
Projeto: AgendaPro

Contém:
- Client: cadastro de clientes do tenant
- ClientAddress: endereços de entrega de um cliente
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from sqlalchemy import Boolean, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agendapro.models import Base
from agendapro.models.mixins import TenantMixin, TimestampMixin, UUIDMixin


class Client(Base, UUIDMixin, TenantMixin, TimestampMixin):
    """
    Cliente de um tenant.

    Attributes:
        name: Nome completo
        phone: Telefone (opcional)
        email: E-mail (opcional)

    Relationships:
        addresses: Endereços cadastrados
    """

    __tablename__ = "clients"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    addresses: Mapped[List["ClientAddress"]] = relationship(
        "ClientAddress",
        back_populates="client",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"Client(id={self.id}, name={self.name!r})"


class ClientAddress(Base, UUIDMixin, TenantMixin, TimestampMixin):
    """Endereço de entrega de um cliente."""

    __tablename__ = "client_addresses"

    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    label: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    street: Mapped[str] = mapped_column(String(200), nullable=False)
    number: Mapped[str] = mapped_column(String(20), nullable=False)
    complement: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    neighborhood: Mapped[str] = mapped_column(String(100), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    zip_code: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    reference: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    client: Mapped["Client"] = relationship("Client", back_populates="addresses")
