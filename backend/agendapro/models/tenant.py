"""
Modelo SQLAlchemy para Tenant (empresa)
Projeto: AgendaPro
"""

from typing import Optional

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from agendapro.models import Base
from agendapro.models.mixins import TimestampMixin, UUIDMixin


class Tenant(Base, UUIDMixin, TimestampMixin):
    """
    Empresa cliente da plataforma: fronteira de isolamento dos dados.
    """

    __tablename__ = "tenants"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"Tenant(id={self.id}, name={self.name!r})"
