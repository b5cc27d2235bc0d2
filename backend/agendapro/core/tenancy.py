"""
Isolamento por tenant
Projeto: AgendaPro

Capacidade explícita de autorização: cada operação do núcleo recebe um
TenantScope e chama scope.check() antes de qualquer leitura ou escrita.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Literal, Optional

from agendapro.core.exceptions import AuthorizationError

logger = logging.getLogger(__name__)

Role = Literal["user", "admin", "master_admin"]

ROLES: tuple[str, ...] = ("user", "admin", "master_admin")


@dataclass(frozen=True)
class CallerIdentity:
    """
    Identidade do chamador, já autenticado pela camada externa.

    Attributes:
        user_id: ID do usuário
        tenant_id: Tenant do usuário (None para master admin sem empresa)
        role: user | admin | master_admin
    """

    user_id: uuid.UUID
    tenant_id: Optional[uuid.UUID]
    role: Role = "user"

    @property
    def is_master_admin(self) -> bool:
        return self.role == "master_admin"


def can_act_on_tenant(caller: CallerIdentity, tenant_id: uuid.UUID) -> bool:
    """Master admin atua em qualquer tenant; os demais apenas no próprio."""
    if caller.is_master_admin:
        return True
    return caller.tenant_id is not None and caller.tenant_id == tenant_id


@dataclass(frozen=True)
class TenantScope:
    """Par (chamador, tenant alvo) passado a todas as operações do núcleo."""

    caller: CallerIdentity
    tenant_id: uuid.UUID

    def check(self) -> None:
        """
        Verifica se o chamador pode atuar no tenant.

        Raises:
            AuthorizationError: Se o tenant não pertence ao chamador
        """
        if not can_act_on_tenant(self.caller, self.tenant_id):
            logger.warning(
                "Acesso negado: usuário %s (tenant %s) tentou atuar no tenant %s",
                self.caller.user_id, self.caller.tenant_id, self.tenant_id,
            )
            raise AuthorizationError(
                "Acesso negado ao tenant solicitado",
                error_code="TENANT_ACCESS_DENIED",
            )
