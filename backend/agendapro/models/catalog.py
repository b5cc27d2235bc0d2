"""
Modelo SQLAlchemy para o Catálogo de Serviços
Projeto: AgendaPro
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from agendapro.models import Base
from agendapro.models.mixins import TenantMixin, TimestampMixin, UUIDMixin


class Service(Base, UUIDMixin, TenantMixin, TimestampMixin):
    """
    Serviço oferecido pelo tenant.

    Attributes:
        name: Nome do serviço
        category: Categoria livre (ex. "Cabelo")
        value: Preço base
        duration: Duração em minutos (pode ser 0)
        promotional_value: Preço promocional (opcional)
        promotion_start_date: Início da promoção, texto YYYY-MM-DD
        promotion_end_date: Fim da promoção, texto YYYY-MM-DD

    As datas da promoção são guardadas como texto: valores ilegíveis
    fazem o preço voltar ao valor base em vez de falhar.
    """

    __tablename__ = "services"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    value: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    duration: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    promotional_value: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    promotion_start_date: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    promotion_end_date: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)

    def __repr__(self) -> str:
        return f"Service(id={self.id}, name={self.name!r}, value={self.value})"
