"""
Schemas Pydantic para o Catálogo de Serviços
Projeto: AgendaPro
"""

import datetime
import uuid
from decimal import Decimal
from typing import Optional

from pydantic import Field, model_validator

from agendapro.schemas.common import CamelModel


class ServiceCreate(CamelModel):
    """
    Cadastro de serviço.

    Os três campos da promoção são informados juntos ou nenhum.
    """

    name: str = Field(..., min_length=1, max_length=200)
    category: Optional[str] = Field(None, max_length=100)
    value: Decimal = Field(..., ge=0, decimal_places=2)
    duration: int = Field(60, ge=0, description="Duração em minutos")
    promotional_value: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    promotion_start_date: Optional[datetime.date] = None
    promotion_end_date: Optional[datetime.date] = None

    @model_validator(mode="after")
    def validate_promotion(self) -> "ServiceCreate":
        fields = (self.promotional_value, self.promotion_start_date, self.promotion_end_date)
        given = [f is not None for f in fields]
        if any(given) and not all(given):
            raise ValueError("Valor promocional e datas de início/fim devem ser informados juntos")
        if all(given) and self.promotion_end_date < self.promotion_start_date:
            raise ValueError("A data final da promoção deve ser posterior à inicial")
        return self


class ServiceRead(CamelModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    name: str
    category: Optional[str] = None
    value: Decimal
    duration: int
    promotional_value: Optional[Decimal] = None
    promotion_start_date: Optional[str] = None
    promotion_end_date: Optional[str] = None


class EffectivePrice(CamelModel):
    service_id: uuid.UUID
    date: datetime.date
    value: Decimal
    effective_value: Decimal
    in_promotion: bool
