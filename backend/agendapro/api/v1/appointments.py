"""
Router FastAPI para Agendamentos
Projeto: AgendaPro

Endpoints de criação, leitura, atualização, mudança de status
e registro de pagamento. Cada endpoint de escrita faz um único commit.
"""

import datetime
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from agendapro.core.database import get_db
from agendapro.core.deps import Components, Scope
from agendapro.schemas.appointment import (
    AppointmentCreate,
    AppointmentRead,
    AppointmentStatusUpdate,
    AppointmentUpdate,
    DayAvailability,
    PaymentRegistration,
)

router = APIRouter(
    prefix="/appointments",
    tags=["Agendamentos"],
)


@router.post(
    "",
    name="create_appointment",
    summary="Criar agendamento",
    description="Cria um agendamento após verificar serviços e conflitos de horário.",
    response_model=AppointmentRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_appointment(
    data: AppointmentCreate,
    scope: Scope,
    components: Components,
    db: AsyncSession = Depends(get_db),
) -> AppointmentRead:
    appointment = await components.scheduler.create_appointment(db, scope, data)
    await db.commit()
    return AppointmentRead.model_validate(appointment)


@router.get(
    "",
    name="list_appointments",
    summary="Agendamentos do dia",
    response_model=list[AppointmentRead],
    status_code=status.HTTP_200_OK,
)
async def list_appointments(
    scope: Scope,
    components: Components,
    date: datetime.date = Query(..., description="Data (YYYY-MM-DD)"),
    db: AsyncSession = Depends(get_db),
) -> list[AppointmentRead]:
    appointments = await components.scheduler.list_by_date(db, scope, date)
    return [AppointmentRead.model_validate(a) for a in appointments]


@router.get(
    "/availability",
    name="get_availability",
    summary="Disponibilidade por dia",
    description="Expediente e agendamentos existentes de cada dia com expediente no período (padrão: hoje + 30 dias).",
    response_model=list[DayAvailability],
    status_code=status.HTTP_200_OK,
)
async def get_availability(
    scope: Scope,
    components: Components,
    start_date: Optional[datetime.date] = Query(None, alias="startDate"),
    end_date: Optional[datetime.date] = Query(None, alias="endDate"),
    client_id: Optional[uuid.UUID] = Query(None, alias="clientId"),
    db: AsyncSession = Depends(get_db),
) -> list[DayAvailability]:
    days = await components.scheduler.get_availability(db, scope, start_date, end_date, client_id)
    return [DayAvailability(**day) for day in days]


@router.get(
    "/{appointment_id}",
    name="get_appointment",
    summary="Detalhe do agendamento",
    response_model=AppointmentRead,
    status_code=status.HTTP_200_OK,
)
async def get_appointment(
    appointment_id: uuid.UUID,
    scope: Scope,
    components: Components,
    db: AsyncSession = Depends(get_db),
) -> AppointmentRead:
    appointment = await components.scheduler.get_appointment(db, scope, appointment_id)
    return AppointmentRead.model_validate(appointment)


@router.put(
    "/{appointment_id}",
    name="update_appointment",
    summary="Atualizar agendamento",
    description="Atualização parcial; data, horário ou serviços alterados disparam nova verificação de conflito.",
    response_model=AppointmentRead,
    status_code=status.HTTP_200_OK,
)
async def update_appointment(
    appointment_id: uuid.UUID,
    patch: AppointmentUpdate,
    scope: Scope,
    components: Components,
    db: AsyncSession = Depends(get_db),
) -> AppointmentRead:
    appointment = await components.scheduler.update_appointment(db, scope, appointment_id, patch)
    await db.commit()
    return AppointmentRead.model_validate(appointment)


@router.patch(
    "/{appointment_id}/status",
    name="change_appointment_status",
    summary="Alterar status",
    response_model=AppointmentRead,
    status_code=status.HTTP_200_OK,
)
async def change_status(
    appointment_id: uuid.UUID,
    body: AppointmentStatusUpdate,
    scope: Scope,
    components: Components,
    db: AsyncSession = Depends(get_db),
) -> AppointmentRead:
    appointment = await components.scheduler.change_status(db, scope, appointment_id, body.status)
    await db.commit()
    return AppointmentRead.model_validate(appointment)


@router.post(
    "/{appointment_id}/payment",
    name="register_appointment_payment",
    summary="Registrar pagamento",
    description="Registra o pagamento de um agendamento concluído e lança a receita.",
    response_model=AppointmentRead,
    status_code=status.HTTP_200_OK,
)
async def register_payment(
    appointment_id: uuid.UUID,
    payment: PaymentRegistration,
    scope: Scope,
    components: Components,
    db: AsyncSession = Depends(get_db),
) -> AppointmentRead:
    appointment = await components.ledger.register_appointment_payment(
        db, scope, appointment_id, payment
    )
    await db.commit()
    return AppointmentRead.model_validate(appointment)
