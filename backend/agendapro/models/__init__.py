"""
Modelos de Banco de Dados SQLAlchemy
Projeto: AgendaPro

Import centralizado de todos os modelos para create_all e uso geral.
"""

# SQLAlchemy 2.0 Base declarativa
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Classe base para todos os modelos SQLAlchemy."""
    pass


from agendapro.models.tenant import Tenant
from agendapro.models.client import Client, ClientAddress
from agendapro.models.professional import Professional
from agendapro.models.business_hours import BusinessHours
from agendapro.models.catalog import Service
from agendapro.models.appointment import Appointment, AppointmentService
from agendapro.models.product import Product
from agendapro.models.order import Order, OrderItem
from agendapro.models.finance import FinanceCategory, FinancialTransaction

__all__ = [
    "Base",
    "Tenant",
    "Client",
    "ClientAddress",
    "Professional",
    "BusinessHours",
    "Service",
    "Appointment",
    "AppointmentService",
    "Product",
    "Order",
    "OrderItem",
    "FinanceCategory",
    "FinancialTransaction",
]
