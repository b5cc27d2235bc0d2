"""
Mixins SQLAlchemy para os modelos
Projeto: AgendaPro

Mixins reutilizáveis com colunas comuns a todas as tabelas.
"""

import datetime
import uuid

from sqlalchemy import DateTime, ForeignKey, Uuid
from sqlalchemy import event
from sqlalchemy.orm import Mapped, Session, declared_attr, mapped_column
from sqlalchemy.sql import func


class TimestampMixin:
    """
    Mixin para timestamps automáticos de criação e atualização.

    Adiciona os campos:
    - created_at: data/hora de criação do registro
    - updated_at: data/hora da última atualização
    """

    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        doc="Data/hora de criação do registro",
    )

    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        doc="Data/hora da última atualização do registro",
    )


class UUIDMixin:
    """Mixin para chave primária UUID gerada na aplicação."""

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        doc="UUID primary key",
    )


class TenantMixin:
    """
    Mixin para entidades particionadas por tenant.

    Toda consulta do núcleo filtra por tenant_id.
    """

    @declared_attr
    def tenant_id(cls) -> Mapped[uuid.UUID]:
        return mapped_column(
            Uuid,
            ForeignKey("tenants.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
            doc="Tenant proprietário do registro",
        )


# ------------------------------------------------------------
# Event Listeners
# ------------------------------------------------------------
@event.listens_for(Session, "before_flush")
def update_timestamp(session: Session, flush_context, instances) -> None:
    """
    Atualiza updated_at dos objetos novos e modificados antes de cada flush.
    """
    now = datetime.datetime.now(datetime.timezone.utc)

    for obj in session.dirty:
        if hasattr(obj, "updated_at"):
            if session.is_modified(obj, include_collections=False):
                obj.updated_at = now

    for obj in session.new:
        if hasattr(obj, "updated_at"):
            obj.updated_at = now
