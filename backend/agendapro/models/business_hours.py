"""
Modelo SQLAlchemy para Horários de Funcionamento
Projeto: AgendaPro
"""

from sqlalchemy import Boolean, CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from agendapro.models import Base
from agendapro.models.mixins import TenantMixin, TimestampMixin, UUIDMixin


class BusinessHours(Base, UUIDMixin, TenantMixin, TimestampMixin):
    """
    Janela de expediente de um dia da semana.

    Attributes:
        day_of_week: 0 = domingo ... 6 = sábado
        start_time / end_time: 'HH:MM'
        active: Janelas inativas não aparecem na disponibilidade

    Um mesmo dia pode ter várias janelas (ex.: manhã e tarde).
    """

    __tablename__ = "business_hours"
    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_business_hours_day_of_week"),
    )

    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"BusinessHours(day={self.day_of_week}, {self.start_time}-{self.end_time})"
