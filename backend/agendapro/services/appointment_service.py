"""
Service Layer para Agendamentos
Projeto: AgendaPro

Calcula a duração a partir dos serviços, detecta sobreposição de horários
e gerencia o ciclo scheduled → completed/cancelled.

Verificação de conflito segue o padrão ler-decidir-escrever: sem
booking_slot_lock duas requisições simultâneas podem reservar o mesmo
horário. Serviços não fazem commit; o router confirma a transação.
"""

import datetime
import logging
import uuid
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

from sqlalchemy import exists, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from agendapro.core.config import Settings
from agendapro.core.exceptions import (
    AppointmentConflictError,
    AppointmentNotFoundError,
    AtLeastOneServiceRequiredError,
    BusinessValidationError,
    ClientNotFoundError,
    InvalidStatusTransitionError,
    ProfessionalNotFoundError,
    ServiceNotFoundError,
)
from agendapro.core.locks import acquire_advisory_lock
from agendapro.core.tenancy import TenantScope
from agendapro.models import Appointment, AppointmentService, BusinessHours, Client, Professional
from agendapro.schemas.appointment import (
    APPOINTMENT_TRANSITIONS,
    AppointmentCreate,
    AppointmentStatus,
    AppointmentUpdate,
    BusinessHoursCreate,
)
from agendapro.services.catalog_service import ServiceCatalog
from agendapro.services.common import get_owned

logger = logging.getLogger(__name__)

# Limite de dias por consulta de disponibilidade
MAX_AVAILABILITY_DAYS = 366
DEFAULT_AVAILABILITY_DAYS = 30


def time_to_minutes(value: str) -> int:
    """'HH:MM' → minutos desde a meia-noite."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(total: int) -> str:
    """
    Minutos → 'HH:MM'.

    Não dá a volta no dia: 1470 vira '24:30'.
    """
    return f"{total // 60:02d}:{total % 60:02d}"


def intervals_overlap(new_start: int, new_end: int, start: int, end: int) -> bool:
    """
    Teste de sobreposição em intervalos semiabertos [início, fim).

    Três casos: o novo começa dentro do existente, termina dentro dele
    ou o contém inteiramente.
    """
    starts_inside = start <= new_start < end
    ends_inside = start < new_end <= end
    contains = new_start <= start and new_end >= end
    return starts_inside or ends_inside or contains


def day_of_week(date: datetime.date) -> int:
    """Dia da semana com domingo = 0 e sábado = 6."""
    return (date.weekday() + 1) % 7


class AppointmentScheduler:
    """
    Agenda de atendimentos por tenant.

    Usage:
        scheduler = AppointmentScheduler(catalog, settings)
        appointment = await scheduler.create_appointment(db, scope, data)
    """

    def __init__(self, catalog: ServiceCatalog, settings: Settings) -> None:
        self.catalog = catalog
        self.settings = settings

    # ------------------------------------------------------------
    # Duração e conflitos
    # ------------------------------------------------------------

    async def compute_duration(
        self,
        db: AsyncSession,
        tenant_id: uuid.UUID,
        service_ids: Sequence[uuid.UUID],
    ) -> int:
        """
        Soma a duração dos serviços (ids repetidos contam duas vezes).

        Returns:
            Duração em minutos; a duração padrão se a soma for 0

        Raises:
            ServiceNotFoundError: Se algum id não pertence ao tenant
        """
        services = await self.catalog.get_services(db, tenant_id, service_ids)
        total = 0
        for service_id in service_ids:
            service = services.get(service_id)
            if service is None:
                logger.warning("Serviço %s não encontrado no tenant %s", service_id, tenant_id)
                raise ServiceNotFoundError(service_id)
            total += service.duration or 0
        return total if total > 0 else self.settings.default_appointment_duration

    async def _linked_durations(
        self,
        db: AsyncSession,
        tenant_id: uuid.UUID,
        appointments: Sequence[Appointment],
    ) -> dict[uuid.UUID, int]:
        """Duração de cada agendamento existente pela soma dos serviços vinculados."""
        all_ids = {sid for a in appointments for sid in a.service_ids}
        services = await self.catalog.get_services(db, tenant_id, all_ids)
        durations = {}
        for appointment in appointments:
            total = sum(
                services[sid].duration or 0
                for sid in appointment.service_ids
                if sid in services
            )
            durations[appointment.id] = total if total > 0 else self.settings.default_appointment_duration
        return durations

    async def find_overlapping(
        self,
        db: AsyncSession,
        tenant_id: uuid.UUID,
        date: datetime.date,
        time: str,
        duration: int,
        exclude_appointment_id: Optional[uuid.UUID] = None,
    ) -> list[tuple[Appointment, int]]:
        """
        Lista os agendamentos do dia cujo intervalo cruza [time, time+duration).

        Returns:
            Pares (agendamento conflitante, sua duração calculada), por horário
        """
        query = (
            select(Appointment)
            .where(Appointment.tenant_id == tenant_id, Appointment.date == date)
            .order_by(Appointment.time.asc())
        )
        if exclude_appointment_id is not None:
            query = query.where(Appointment.id != exclude_appointment_id)
        if not self.settings.cancelled_appointments_block_slot:
            query = query.where(Appointment.status != AppointmentStatus.CANCELLED.value)

        result = await db.execute(query)
        existing = list(result.scalars().all())
        if not existing:
            return []

        durations = await self._linked_durations(db, tenant_id, existing)
        new_start = time_to_minutes(time)
        new_end = new_start + duration

        conflicts = []
        for appointment in existing:
            start = time_to_minutes(appointment.time)
            end = start + durations[appointment.id]
            if intervals_overlap(new_start, new_end, start, end):
                conflicts.append((appointment, durations[appointment.id]))
        return conflicts

    async def _ensure_no_conflict(
        self,
        db: AsyncSession,
        tenant_id: uuid.UUID,
        date: datetime.date,
        time: str,
        duration: int,
        exclude_appointment_id: Optional[uuid.UUID] = None,
    ) -> None:
        conflicts = await self.find_overlapping(
            db, tenant_id, date, time, duration, exclude_appointment_id
        )
        if conflicts:
            conflicting, conflict_duration = conflicts[0]
            start = time_to_minutes(conflicting.time)
            logger.warning(
                "Conflito de horário em %s %s (tenant %s) com o agendamento %s",
                date, time, tenant_id, conflicting.id,
            )
            raise AppointmentConflictError(
                conflicting_appointment_id=conflicting.id,
                conflict_start=conflicting.time,
                conflict_end=minutes_to_time(start + conflict_duration),
            )

    async def _ensure_participants(
        self,
        db: AsyncSession,
        tenant_id: uuid.UUID,
        client_id: Optional[uuid.UUID],
        professional_id: Optional[uuid.UUID],
    ) -> None:
        if client_id is not None and await get_owned(db, Client, tenant_id, client_id) is None:
            logger.warning("Cliente %s não encontrado no tenant %s", client_id, tenant_id)
            raise ClientNotFoundError(client_id)
        if professional_id is not None and await get_owned(db, Professional, tenant_id, professional_id) is None:
            logger.warning("Profissional %s não encontrado no tenant %s", professional_id, tenant_id)
            raise ProfessionalNotFoundError(professional_id)

    @staticmethod
    def _validate_transition(current: str, requested: str) -> None:
        if current == requested:
            return
        allowed = APPOINTMENT_TRANSITIONS.get(AppointmentStatus(current), [])
        if AppointmentStatus(requested) not in allowed:
            raise InvalidStatusTransitionError(current, requested)

    # ------------------------------------------------------------
    # Operações
    # ------------------------------------------------------------

    async def get_appointment(
        self,
        db: AsyncSession,
        scope: TenantScope,
        appointment_id: uuid.UUID,
        for_update: bool = False,
    ) -> Appointment:
        scope.check()
        appointment = await get_owned(db, Appointment, scope.tenant_id, appointment_id, for_update)
        if appointment is None:
            logger.warning("Agendamento %s não encontrado no tenant %s", appointment_id, scope.tenant_id)
            raise AppointmentNotFoundError(appointment_id)
        return appointment

    async def list_by_date(
        self,
        db: AsyncSession,
        scope: TenantScope,
        date: datetime.date,
    ) -> list[Appointment]:
        scope.check()
        result = await db.execute(
            select(Appointment)
            .where(Appointment.tenant_id == scope.tenant_id, Appointment.date == date)
            .order_by(Appointment.time.asc())
        )
        return list(result.scalars().all())

    async def create_appointment(
        self,
        db: AsyncSession,
        scope: TenantScope,
        data: AppointmentCreate,
    ) -> Appointment:
        """
        Cria um agendamento e seus vínculos de serviço no mesmo flush.

        Raises:
            AtLeastOneServiceRequiredError: serviceIds vazio
            ClientNotFoundError / ProfessionalNotFoundError: fora do tenant
            ServiceNotFoundError: serviço inexistente no tenant
            AppointmentConflictError: horário ocupado
        """
        scope.check()
        if not data.service_ids:
            raise AtLeastOneServiceRequiredError()

        await self._ensure_participants(db, scope.tenant_id, data.client_id, data.professional_id)
        await acquire_advisory_lock(db, self.settings, "appointment", scope.tenant_id, data.date)

        duration = await self.compute_duration(db, scope.tenant_id, data.service_ids)
        await self._ensure_no_conflict(db, scope.tenant_id, data.date, data.time, duration)

        appointment = Appointment(
            tenant_id=scope.tenant_id,
            client_id=data.client_id,
            professional_id=data.professional_id,
            date=data.date,
            time=data.time,
            duration=duration,
            status=data.status.value,
            notes=data.notes,
            service_links=[AppointmentService(service_id=sid) for sid in data.service_ids],
        )
        db.add(appointment)
        await db.flush()

        logger.info(
            "Agendamento %s criado em %s %s (%s min, tenant %s)",
            appointment.id, appointment.date, appointment.time, duration, scope.tenant_id,
        )
        return appointment

    async def update_appointment(
        self,
        db: AsyncSession,
        scope: TenantScope,
        appointment_id: uuid.UUID,
        patch: AppointmentUpdate,
    ) -> Appointment:
        """
        Atualização parcial.

        Se date, time ou serviceIds vierem no patch, a duração é recalculada
        e o conflito verificado contra a data/hora finais, ignorando o
        próprio agendamento.
        """
        appointment = await self.get_appointment(db, scope, appointment_id)
        changes = patch.model_dump(exclude_unset=True)

        # Campos obrigatórios enviados como null equivalem a ausentes
        for field in ("client_id", "date", "time", "status", "service_ids"):
            if field in changes and changes[field] is None:
                del changes[field]

        service_ids = changes.pop("service_ids", None)
        if service_ids is not None and len(service_ids) == 0:
            raise AtLeastOneServiceRequiredError()

        await self._ensure_participants(
            db, scope.tenant_id, changes.get("client_id"), changes.get("professional_id")
        )

        if "status" in changes:
            self._validate_transition(appointment.status, changes["status"].value)
            changes["status"] = changes["status"].value

        if service_ids is not None or "date" in changes or "time" in changes:
            final_date = changes.get("date", appointment.date)
            final_time = changes.get("time", appointment.time)
            await acquire_advisory_lock(db, self.settings, "appointment", scope.tenant_id, final_date)
            if service_ids is not None:
                duration = await self.compute_duration(db, scope.tenant_id, service_ids)
            else:
                durations = await self._linked_durations(db, scope.tenant_id, [appointment])
                duration = durations[appointment.id]
            await self._ensure_no_conflict(
                db, scope.tenant_id, final_date, final_time, duration, appointment.id
            )
            appointment.duration = duration

        for field, value in changes.items():
            setattr(appointment, field, value)
        if service_ids is not None:
            appointment.service_links = [AppointmentService(service_id=sid) for sid in service_ids]

        await db.flush()
        logger.info("Agendamento %s atualizado: %s", appointment.id, sorted(changes))
        return appointment

    async def change_status(
        self,
        db: AsyncSession,
        scope: TenantScope,
        appointment_id: uuid.UUID,
        status: AppointmentStatus,
    ) -> Appointment:
        appointment = await self.get_appointment(db, scope, appointment_id)
        previous = appointment.status
        self._validate_transition(previous, status.value)
        appointment.status = status.value
        await db.flush()
        logger.info("Agendamento %s: status %s → %s", appointment.id, previous, status.value)
        return appointment

    # ------------------------------------------------------------
    # Expediente e disponibilidade
    # ------------------------------------------------------------

    def today(self) -> datetime.date:
        return datetime.datetime.now(ZoneInfo(self.settings.business_timezone)).date()

    async def list_business_hours(
        self,
        db: AsyncSession,
        scope: TenantScope,
    ) -> list[BusinessHours]:
        scope.check()
        result = await db.execute(
            select(BusinessHours)
            .where(BusinessHours.tenant_id == scope.tenant_id)
            .order_by(BusinessHours.day_of_week.asc(), BusinessHours.start_time.asc())
        )
        return list(result.scalars().all())

    async def add_business_hours(
        self,
        db: AsyncSession,
        scope: TenantScope,
        data: BusinessHoursCreate,
    ) -> BusinessHours:
        scope.check()
        window = BusinessHours(tenant_id=scope.tenant_id, **data.model_dump())
        db.add(window)
        await db.flush()
        logger.info(
            "Expediente %s-%s (dia %s) cadastrado no tenant %s",
            window.start_time, window.end_time, window.day_of_week, scope.tenant_id,
        )
        return window

    async def get_availability(
        self,
        db: AsyncSession,
        scope: TenantScope,
        start_date: Optional[datetime.date] = None,
        end_date: Optional[datetime.date] = None,
        client_id: Optional[uuid.UUID] = None,
    ) -> list[dict]:
        """
        Expediente e agendamentos de cada dia de [start_date, end_date].

        Padrão: de hoje até 30 dias depois. Dias sem janela de expediente
        ativa ficam de fora; a duração de cada agendamento é a soma dos
        serviços vinculados.

        Raises:
            BusinessValidationError: intervalo invertido ou longo demais
        """
        scope.check()
        start_date = start_date or self.today()
        end_date = end_date or start_date + datetime.timedelta(days=DEFAULT_AVAILABILITY_DAYS)
        if end_date < start_date:
            raise BusinessValidationError("endDate deve ser posterior a startDate")
        if (end_date - start_date).days >= MAX_AVAILABILITY_DAYS:
            raise BusinessValidationError(
                f"O intervalo de disponibilidade é limitado a {MAX_AVAILABILITY_DAYS} dias"
            )

        hours = await db.execute(
            select(BusinessHours)
            .where(BusinessHours.tenant_id == scope.tenant_id, BusinessHours.active.is_(True))
            .order_by(BusinessHours.start_time.asc())
        )
        windows_by_day: dict[int, list[BusinessHours]] = {}
        for window in hours.scalars().all():
            windows_by_day.setdefault(window.day_of_week, []).append(window)

        query = (
            select(Appointment)
            .where(
                Appointment.tenant_id == scope.tenant_id,
                Appointment.date >= start_date,
                Appointment.date <= end_date,
            )
            .order_by(Appointment.date.asc(), Appointment.time.asc())
        )
        if client_id is not None:
            query = query.where(Appointment.client_id == client_id)
        appointments = list((await db.execute(query)).scalars().all())

        durations = {}
        if appointments:
            durations = await self._linked_durations(db, scope.tenant_id, appointments)
        appointments_by_date: dict[datetime.date, list[Appointment]] = {}
        for appointment in appointments:
            appointments_by_date.setdefault(appointment.date, []).append(appointment)

        days = []
        day = start_date
        while day <= end_date:
            weekday = day_of_week(day)
            windows = windows_by_day.get(weekday)
            if windows:
                days.append({
                    "date": day,
                    "day_of_week": weekday,
                    "business_hours": [
                        {"start_time": w.start_time, "end_time": w.end_time} for w in windows
                    ],
                    "appointments": [
                        {
                            "id": a.id,
                            "time": a.time,
                            "duration": durations[a.id],
                            "client_id": a.client_id,
                            "service_ids": a.service_ids,
                            "status": a.status,
                        }
                        for a in appointments_by_date.get(day, [])
                    ],
                })
            day += datetime.timedelta(days=1)
        return days

    # ------------------------------------------------------------
    # Reparo de agendamentos sem serviço
    # ------------------------------------------------------------

    async def find_orphan_appointments(
        self,
        db: AsyncSession,
        scope: TenantScope,
    ) -> list[Appointment]:
        """Agendamentos do tenant sem nenhum serviço vinculado."""
        scope.check()
        has_link = exists().where(AppointmentService.appointment_id == Appointment.id)
        result = await db.execute(
            select(Appointment)
            .where(Appointment.tenant_id == scope.tenant_id, ~has_link)
            .order_by(Appointment.date.asc(), Appointment.time.asc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def fix_orphan_appointments(
        self,
        db: AsyncSession,
        scope: TenantScope,
        default_service_id: uuid.UUID,
    ) -> dict:
        """
        Vincula o serviço padrão a cada órfão, um savepoint por linha,
        e ajusta a duração armazenada para a do serviço.

        Falhas individuais não interrompem o lote.

        Returns:
            {"fixed": int, "errors": list[str]}
        """
        scope.check()
        services = await self.catalog.get_services(db, scope.tenant_id, [default_service_id])
        default_service = services.get(default_service_id)
        if default_service is None:
            logger.warning(
                "Serviço padrão %s não pertence ao tenant %s", default_service_id, scope.tenant_id
            )
            return {"fixed": 0, "errors": [f"Serviço padrão {default_service_id} não encontrado"]}

        orphans = await self.find_orphan_appointments(db, scope)
        fixed = 0
        errors: list[str] = []
        for orphan in orphans:
            orphan_id = orphan.id
            try:
                async with db.begin_nested():
                    orphan.service_links.append(AppointmentService(service_id=default_service_id))
                    orphan.duration = default_service.duration or self.settings.default_appointment_duration
                    await db.flush()
                fixed += 1
            except SQLAlchemyError as e:
                logger.warning("Falha ao reparar agendamento %s: %s", orphan_id, e)
                errors.append(f"Agendamento {orphan_id}: {e}")

        logger.info(
            "Reparo de órfãos no tenant %s: %s corrigidos, %s erros",
            scope.tenant_id, fixed, len(errors),
        )
        return {"fixed": fixed, "errors": errors}
