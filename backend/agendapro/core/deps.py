"""
Dependency Injection para identidade do chamador e componentes
Projeto: AgendaPro

A autenticação é feita pela camada externa (gateway); aqui apenas
lemos a identidade já resolvida nos headers da requisição.
"""

import uuid
from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, Request, status

from agendapro.core.container import Container
from agendapro.core.tenancy import ROLES, CallerIdentity, TenantScope


def _parse_uuid(value: Optional[str], header: str) -> Optional[uuid.UUID]:
    if value is None or value == "":
        return None
    try:
        return uuid.UUID(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Header {header} inválido",
        )


async def get_caller(
    x_user_id: Annotated[Optional[str], Header()] = None,
    x_tenant_id: Annotated[Optional[str], Header()] = None,
    x_user_role: Annotated[Optional[str], Header()] = None,
) -> CallerIdentity:
    """
    Dependency que monta a identidade do chamador.

    Raises:
        HTTPException 401: Se o usuário não foi identificado
    """
    user_id = _parse_uuid(x_user_id, "X-User-Id")
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Usuário não autenticado",
        )

    role = x_user_role or "user"
    if role not in ROLES:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Papel desconhecido: {role}",
        )

    return CallerIdentity(
        user_id=user_id,
        tenant_id=_parse_uuid(x_tenant_id, "X-Tenant-Id"),
        role=role,
    )


def require_role(*allowed_roles: str):
    """
    Factory que cria uma dependency verificando o papel do chamador.

    Example:
        @router.get("/admin-only")
        async def admin_endpoint(caller = Depends(require_role("master_admin"))):
            ...
    """
    async def role_checker(
        caller: Annotated[CallerIdentity, Depends(get_caller)],
    ) -> CallerIdentity:
        if caller.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Acesso negado. Papéis permitidos: {', '.join(allowed_roles)}",
            )
        return caller

    return role_checker


async def get_tenant_scope(
    caller: Annotated[CallerIdentity, Depends(get_caller)],
) -> TenantScope:
    """Escopo do próprio tenant do chamador."""
    if caller.tenant_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Usuário sem empresa vinculada",
        )
    return TenantScope(caller=caller, tenant_id=caller.tenant_id)


def get_container(request: Request) -> Container:
    return request.app.state.container


# Aliases de tipo para uso comum
CurrentCaller = Annotated[CallerIdentity, Depends(get_caller)]
MasterAdmin = Annotated[CallerIdentity, Depends(require_role("master_admin"))]
Scope = Annotated[TenantScope, Depends(get_tenant_scope)]
Components = Annotated[Container, Depends(get_container)]
