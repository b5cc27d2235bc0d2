"""
Exceções customizadas da aplicação.
Projeto: AgendaPro

Define exceções específicas do domínio para um tratamento
centralizado dos erros.

NOTA: BusinessValidationError é distinta de pydantic.ValidationError.
- pydantic.ValidationError: erros de formato/tipo nos dados de entrada (FastAPI → 422)
- BusinessValidationError: violações das regras de negócio (nosso handler → 422)
"""

import uuid
from typing import Any, Dict, Optional

__all__ = [
    "AppException",
    "NotFoundError",
    "ServiceNotFoundError",
    "AppointmentNotFoundError",
    "ClientNotFoundError",
    "ProfessionalNotFoundError",
    "ProductNotFoundError",
    "OrderNotFoundError",
    "CategoryNotFoundError",
    "BusinessValidationError",
    "AtLeastOneServiceRequiredError",
    "InvalidStatusTransitionError",
    "ConflictError",
    "AppointmentConflictError",
    "ProductInactiveError",
    "InsufficientStockError",
    "AlreadyPaidError",
    "NotCompletedError",
    "OrderNotCancellableError",
    "AuthorizationError",
    "AuthenticationError",
]


class AppException(Exception):
    """
    Exceção base da aplicação.

    Todas as exceções customizadas herdam desta classe.

    Attributes:
        status_code: HTTP status code devolvido ao cliente
        error_code: Identificador único do erro para o frontend
        detail: Mensagem de erro legível para o usuário
        extra: Dicionário com dados adicionais para o frontend
    """

    status_code: int = 500
    error_code: str = "INTERNAL_SERVER_ERROR"

    def __init__(
        self,
        detail: str,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.detail = detail
        self.error_code = error_code if error_code is not None else self.error_code
        self.extra = extra
        self.status_code = self.__class__.status_code
        super().__init__(detail)


# ------------------------------------------------------------
# Not found (404)
# ------------------------------------------------------------

class NotFoundError(AppException):
    """
    Recurso inexistente ou não pertencente ao tenant.

    Para o chamador as duas situações são indistinguíveis.
    """

    status_code: int = 404
    error_code: str = "RESOURCE_NOT_FOUND"

    def __init__(
        self,
        detail: str = "Recurso não encontrado",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class ServiceNotFoundError(NotFoundError):
    error_code: str = "SERVICE_NOT_FOUND"

    def __init__(self, service_id: uuid.UUID) -> None:
        self.service_id = service_id
        super().__init__(
            f"Serviço {service_id} não encontrado",
            extra={"serviceId": str(service_id)},
        )


class AppointmentNotFoundError(NotFoundError):
    error_code: str = "APPOINTMENT_NOT_FOUND"

    def __init__(self, appointment_id: uuid.UUID) -> None:
        super().__init__(f"Agendamento {appointment_id} não encontrado")


class ClientNotFoundError(NotFoundError):
    error_code: str = "CLIENT_NOT_FOUND"

    def __init__(self, client_id: uuid.UUID) -> None:
        super().__init__(f"Cliente {client_id} não encontrado")


class ProfessionalNotFoundError(NotFoundError):
    error_code: str = "PROFESSIONAL_NOT_FOUND"

    def __init__(self, professional_id: uuid.UUID) -> None:
        super().__init__(f"Profissional {professional_id} não encontrado")


class ProductNotFoundError(NotFoundError):
    error_code: str = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: uuid.UUID) -> None:
        self.product_id = product_id
        super().__init__(
            f"Produto {product_id} não encontrado",
            extra={"productId": str(product_id)},
        )


class OrderNotFoundError(NotFoundError):
    error_code: str = "ORDER_NOT_FOUND"

    def __init__(self, order_id: uuid.UUID) -> None:
        super().__init__(f"Pedido {order_id} não encontrado")


class CategoryNotFoundError(NotFoundError):
    error_code: str = "CATEGORY_NOT_FOUND"

    def __init__(self, category_id: uuid.UUID) -> None:
        super().__init__(f"Categoria financeira {category_id} não encontrada")


# ------------------------------------------------------------
# Validação de negócio (422)
# ------------------------------------------------------------

class BusinessValidationError(ValueError, AppException):
    """
    Exceção para violações das regras de negócio.

    Herda de ValueError para poder ser levantada dentro de validadores Pydantic.

    Exemplos:
        - "Pelo menos um serviço deve ser selecionado"
        - "Transição de status não permitida"
    """

    status_code: int = 422
    error_code: str = "BUSINESS_VALIDATION_ERROR"

    def __init__(
        self,
        detail: str = "Validação de dados falhou",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        # Chama AppException.__init__ diretamente para não passar por ValueError
        AppException.__init__(self, detail, error_code, extra)


class AtLeastOneServiceRequiredError(BusinessValidationError):
    error_code: str = "AT_LEAST_ONE_SERVICE_REQUIRED"

    def __init__(self) -> None:
        super().__init__("Pelo menos um serviço deve ser selecionado")


class InvalidStatusTransitionError(BusinessValidationError):
    error_code: str = "INVALID_STATUS_TRANSITION"

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(
            f"Transição de '{current}' para '{requested}' não permitida",
            extra={"currentStatus": current, "requestedStatus": requested},
        )


# ------------------------------------------------------------
# Conflitos (409)
# ------------------------------------------------------------

class ConflictError(AppException):
    """
    Exceção para conflitos de estado.

    Levantada após a leitura e antes de qualquer escrita, com detalhes
    suficientes para o chamador tentar novamente.
    """

    status_code: int = 409
    error_code: str = "CONFLICT_STATE"

    def __init__(
        self,
        detail: str = "Conflito de estado",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class AppointmentConflictError(ConflictError):
    """
    O horário solicitado sobrepõe um agendamento existente.

    Attributes:
        conflicting_appointment_id: ID do agendamento que ocupa o horário
        conflict_start: Início do agendamento conflitante (HH:MM)
        conflict_end: Fim do agendamento conflitante (HH:MM)
    """

    error_code: str = "APPOINTMENT_CONFLICT"

    def __init__(
        self,
        conflicting_appointment_id: uuid.UUID,
        conflict_start: str,
        conflict_end: str,
    ) -> None:
        self.conflicting_appointment_id = conflicting_appointment_id
        self.conflict_start = conflict_start
        self.conflict_end = conflict_end
        message = (
            f"Já existe um agendamento das {conflict_start} às {conflict_end}. "
            f"Próximo horário disponível: {conflict_end}"
        )
        super().__init__(
            "Horário indisponível",
            extra={
                "conflictingAppointmentId": str(conflicting_appointment_id),
                "conflictStart": conflict_start,
                "conflictEnd": conflict_end,
                "message": message,
            },
        )


class ProductInactiveError(ConflictError):
    error_code: str = "PRODUCT_INACTIVE"

    def __init__(self, product_id: uuid.UUID, name: str) -> None:
        super().__init__(
            f"Produto indisponível: {name}",
            extra={"productId": str(product_id)},
        )


class InsufficientStockError(ConflictError):
    error_code: str = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: uuid.UUID, name: str, available: int, requested: int) -> None:
        self.available = available
        self.requested = requested
        super().__init__(
            f"Estoque insuficiente para {name}. Disponível: {available}, solicitado: {requested}",
            extra={
                "productId": str(product_id),
                "available": available,
                "requested": requested,
            },
        )


class AlreadyPaidError(ConflictError):
    error_code: str = "ALREADY_PAID"

    def __init__(self, appointment_id: uuid.UUID) -> None:
        super().__init__(f"Pagamento do agendamento {appointment_id} já registrado")


class NotCompletedError(ConflictError):
    error_code: str = "NOT_COMPLETED"

    def __init__(self, appointment_id: uuid.UUID, status: str) -> None:
        super().__init__(
            "Pagamento só pode ser registrado em agendamentos concluídos",
            extra={"appointmentId": str(appointment_id), "status": status},
        )


class OrderNotCancellableError(ConflictError):
    error_code: str = "ORDER_NOT_CANCELLABLE"

    def __init__(self, order_id: uuid.UUID) -> None:
        super().__init__(f"Pedido {order_id} não pode ser cancelado")


# ------------------------------------------------------------
# Autenticação / autorização
# ------------------------------------------------------------

class AuthenticationError(AppException):
    """Identidade do chamador ausente ou inválida."""

    status_code: int = 401
    error_code: str = "UNAUTHENTICATED"

    def __init__(self, detail: str = "Não autenticado") -> None:
        super().__init__(detail)


class AuthorizationError(AppException):
    """
    Acesso não autorizado.

    Exemplos:
        - "Acesso negado ao tenant solicitado"
        - "Apenas administradores podem acessar este recurso"
    """

    status_code: int = 403
    error_code: str = "FORBIDDEN"

    def __init__(
        self,
        detail: str = "Acesso não autorizado",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)
