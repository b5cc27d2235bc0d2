"""
Base comum dos schemas
Projeto: AgendaPro
"""

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

# Valor monetário que sai como número no JSON (e continua Decimal em Python)
MoneyNumber = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    """
    Modelo base: atributos snake_case em Python, camelCase no JSON.

    Aceita os dois formatos na entrada (populate_by_name).
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
