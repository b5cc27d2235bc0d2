"""
API v1 Routes
Projeto: AgendaPro

Router versão 1 da API.
"""

from fastapi import APIRouter

from agendapro.api.v1 import admin, appointments, business_hours, finance, orders, services

# Router agregado da v1
api_v1_router = APIRouter(prefix="/api/v1")

api_v1_router.include_router(appointments.router)
api_v1_router.include_router(business_hours.router)
api_v1_router.include_router(services.router)
api_v1_router.include_router(orders.router)
api_v1_router.include_router(finance.router)
api_v1_router.include_router(admin.router)

__all__ = ["api_v1_router"]
