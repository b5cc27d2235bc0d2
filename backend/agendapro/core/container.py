"""
Container dos componentes do núcleo
Projeto: AgendaPro

Constrói os serviços uma única vez com seus colaboradores explícitos.
"""

from dataclasses import dataclass

from agendapro.core.config import Settings
from agendapro.services.appointment_service import AppointmentScheduler
from agendapro.services.catalog_service import ServiceCatalog
from agendapro.services.ledger_service import FinancialLedger
from agendapro.services.order_service import OrderFulfillment


@dataclass
class Container:
    settings: Settings
    catalog: ServiceCatalog
    ledger: FinancialLedger
    scheduler: AppointmentScheduler
    orders: OrderFulfillment


def build_container(settings: Settings) -> Container:
    catalog = ServiceCatalog()
    ledger = FinancialLedger(catalog, settings)
    return Container(
        settings=settings,
        catalog=catalog,
        ledger=ledger,
        scheduler=AppointmentScheduler(catalog, settings),
        orders=OrderFulfillment(ledger, settings),
    )
