"""
Modelo SQLAlchemy para Profissionais
Projeto: AgendaPro
"""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from agendapro.models import Base
from agendapro.models.mixins import TenantMixin, TimestampMixin, UUIDMixin


class Professional(Base, UUIDMixin, TenantMixin, TimestampMixin):
    """Profissional que realiza os atendimentos."""

    __tablename__ = "professionals"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"Professional(id={self.id}, name={self.name!r})"
