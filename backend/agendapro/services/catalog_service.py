"""
Service Layer para o Catálogo de Serviços
Projeto: AgendaPro

Resolve o preço efetivo (base ou promocional) e carrega serviços
do tenant. As funções de preço são puras e avaliadas contra a data
do agendamento, nunca contra "hoje".
"""

import datetime
import logging
import uuid
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from agendapro.core.exceptions import ServiceNotFoundError
from agendapro.core.tenancy import TenantScope
from agendapro.models import Service

logger = logging.getLogger(__name__)


def _parse_date(value: object) -> Optional[datetime.date]:
    """Converte texto YYYY-MM-DD (ou date) em date; None se ilegível."""
    if value is None:
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    try:
        return datetime.date.fromisoformat(str(value).strip()[:10])
    except (TypeError, ValueError):
        return None


class ServiceCatalog:
    """
    Catálogo de serviços: preço efetivo e duração.

    Não guarda estado; pode ser compartilhado entre requisições.
    """

    def is_in_promotion(self, service: Service, on_date: datetime.date) -> bool:
        """
        Verifica se on_date cai na janela [início, fim] da promoção (inclusiva).

        Qualquer campo ausente ou data ilegível resulta em False.
        """
        if service.promotional_value is None:
            return False
        start = _parse_date(service.promotion_start_date)
        end = _parse_date(service.promotion_end_date)
        if start is None or end is None:
            return False
        return start <= on_date <= end

    def effective_value(self, service: Service, on_date: datetime.date) -> Decimal:
        """
        Preço do serviço na data informada.

        Args:
            service: Serviço do catálogo
            on_date: Data do agendamento

        Returns:
            promotional_value dentro da janela, senão value
        """
        if self.is_in_promotion(service, on_date):
            return Decimal(service.promotional_value)
        return Decimal(service.value)

    async def get_services(
        self,
        db: AsyncSession,
        tenant_id: uuid.UUID,
        service_ids: Iterable[uuid.UUID],
    ) -> dict[uuid.UUID, Service]:
        """
        Carrega os serviços do tenant em uma única consulta.

        Ids de outros tenants simplesmente não aparecem no resultado.
        """
        ids = set(service_ids)
        if not ids:
            return {}
        result = await db.execute(
            select(Service).where(Service.tenant_id == tenant_id, Service.id.in_(ids))
        )
        return {s.id: s for s in result.scalars().all()}

    async def get_service(
        self,
        db: AsyncSession,
        scope: TenantScope,
        service_id: uuid.UUID,
    ) -> Service:
        scope.check()
        services = await self.get_services(db, scope.tenant_id, [service_id])
        service = services.get(service_id)
        if service is None:
            logger.warning("Serviço %s não encontrado no tenant %s", service_id, scope.tenant_id)
            raise ServiceNotFoundError(service_id)
        return service
