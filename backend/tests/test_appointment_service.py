"""
Testes do AppointmentScheduler: duração, sobreposição, atualização,
máquina de estados e reparo de órfãos.
"""

import datetime
import uuid
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pydantic import ValidationError
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from agendapro.core.exceptions import (
    AppointmentConflictError,
    AtLeastOneServiceRequiredError,
    BusinessValidationError,
    ClientNotFoundError,
    InvalidStatusTransitionError,
    ServiceNotFoundError,
)
from agendapro.models import AppointmentService, Client
from agendapro.schemas.appointment import (
    AppointmentCreate,
    AppointmentStatus,
    AppointmentUpdate,
    BusinessHoursCreate,
)
from agendapro.services.appointment_service import (
    AppointmentScheduler,
    day_of_week,
    intervals_overlap,
    minutes_to_time,
    time_to_minutes,
)
from agendapro.services.catalog_service import ServiceCatalog

DAY = datetime.date(2025, 3, 10)


def booking(client, services, time="10:00", date=DAY, **kwargs) -> AppointmentCreate:
    return AppointmentCreate(
        client_id=client.id,
        service_ids=[s.id for s in services],
        date=date,
        time=time,
        **kwargs,
    )


# ============================================================
# Helpers de horário
# ============================================================


class TestTimeHelpers:

    def test_time_to_minutes(self):
        assert time_to_minutes("00:00") == 0
        assert time_to_minutes("10:50") == 650

    def test_minutes_to_time_does_not_wrap(self):
        assert minutes_to_time(650) == "10:50"
        assert minutes_to_time(1470) == "24:30"

    @pytest.mark.parametrize(
        "new, existing, expected",
        [
            ((600, 650), (600, 650), True),   # mesmo intervalo
            ((630, 700), (600, 650), True),   # começa dentro
            ((570, 610), (600, 650), True),   # termina dentro
            ((570, 700), (600, 650), True),   # contém
            ((650, 700), (600, 650), False),  # encostado depois
            ((540, 600), (600, 650), False),  # encostado antes
        ],
    )
    def test_intervals_overlap(self, new, existing, expected):
        assert intervals_overlap(*new, *existing) is expected


# ============================================================
# Duração
# ============================================================


class TestComputeDuration:

    async def test_sum_of_durations(self, db, container, tenant_a, make_service):
        s30 = await make_service(duration=30)
        s20 = await make_service(duration=20)
        duration = await container.scheduler.compute_duration(db, tenant_a.id, [s30.id, s20.id])
        assert duration == 50

    async def test_zero_sum_defaults_to_sixty(self, db, container, tenant_a, make_service):
        a = await make_service(duration=0)
        b = await make_service(duration=0)
        assert await container.scheduler.compute_duration(db, tenant_a.id, [a.id, b.id]) == 60

    async def test_repeated_service_counts_twice(self, db, container, tenant_a, make_service):
        s = await make_service(duration=25)
        assert await container.scheduler.compute_duration(db, tenant_a.id, [s.id, s.id]) == 50

    async def test_foreign_service_not_found(self, db, container, tenant_a, tenant_b, make_service):
        own = await make_service(duration=30)
        foreign = await make_service(duration=30, tenant=tenant_b)
        with pytest.raises(ServiceNotFoundError):
            await container.scheduler.compute_duration(db, tenant_a.id, [own.id, foreign.id])

    async def test_unknown_service_not_found(self, db, container, tenant_a):
        with pytest.raises(ServiceNotFoundError):
            await container.scheduler.compute_duration(db, tenant_a.id, [uuid.uuid4()])


# ============================================================
# Criação e conflitos
# ============================================================


class TestCreateAppointment:

    async def test_creates_appointment_with_links(self, db, container, scope_a, client_a, make_service):
        s30 = await make_service(duration=30)
        s20 = await make_service(duration=20)

        appointment = await container.scheduler.create_appointment(
            db, scope_a, booking(client_a, [s30, s20])
        )

        assert appointment.duration == 50
        assert appointment.status == "scheduled"
        assert sorted(appointment.service_ids) == sorted([s30.id, s20.id])
        links = (await db.execute(
            select(AppointmentService).where(AppointmentService.appointment_id == appointment.id)
        )).scalars().all()
        assert len(links) == 2

    async def test_empty_service_ids_rejected(self, db, container, scope_a, client_a):
        with pytest.raises(AtLeastOneServiceRequiredError) as exc_info:
            await container.scheduler.create_appointment(db, scope_a, booking(client_a, []))
        assert exc_info.value.error_code == "AT_LEAST_ONE_SERVICE_REQUIRED"

    async def test_overlap_reports_conflict_details(self, db, container, scope_a, client_a, make_service):
        s30 = await make_service(duration=30)
        s20 = await make_service(duration=20)
        first = await container.scheduler.create_appointment(db, scope_a, booking(client_a, [s30, s20]))

        with pytest.raises(AppointmentConflictError) as exc_info:
            await container.scheduler.create_appointment(db, scope_a, booking(client_a, [s30], time="10:30"))

        error = exc_info.value
        assert error.status_code == 409
        assert error.error_code == "APPOINTMENT_CONFLICT"
        assert error.conflicting_appointment_id == first.id
        assert error.conflict_start == "10:00"
        assert error.conflict_end == "10:50"
        assert error.extra["message"] == (
            "Já existe um agendamento das 10:00 às 10:50. Próximo horário disponível: 10:50"
        )

    async def test_adjacent_slot_is_free(self, db, container, scope_a, client_a, make_service):
        s50 = await make_service(duration=50)
        await container.scheduler.create_appointment(db, scope_a, booking(client_a, [s50]))
        second = await container.scheduler.create_appointment(
            db, scope_a, booking(client_a, [s50], time="10:50")
        )
        assert second.time == "10:50"

    async def test_new_containing_existing_conflicts(self, db, container, scope_a, client_a, make_service):
        short = await make_service(duration=30)
        long = await make_service(duration=120)
        await container.scheduler.create_appointment(db, scope_a, booking(client_a, [short]))
        with pytest.raises(AppointmentConflictError):
            await container.scheduler.create_appointment(db, scope_a, booking(client_a, [long], time="09:30"))

    async def test_conflict_end_uses_existing_services(
        self, db, container, scope_a, client_a, make_service, make_appointment
    ):
        """O fim do conflito vem dos serviços vinculados, não da coluna duration."""
        s45 = await make_service(duration=45)
        existing = await make_appointment([s45], time="14:00")
        existing.duration = 999
        await db.flush()

        with pytest.raises(AppointmentConflictError) as exc_info:
            await container.scheduler.create_appointment(db, scope_a, booking(client_a, [s45], time="14:30"))
        assert exc_info.value.conflict_end == "14:45"

    async def test_cancelled_appointment_still_blocks(
        self, db, container, scope_a, client_a, make_service, make_appointment
    ):
        s30 = await make_service(duration=30)
        await make_appointment([s30], status="cancelled")
        with pytest.raises(AppointmentConflictError):
            await container.scheduler.create_appointment(db, scope_a, booking(client_a, [s30]))

    async def test_cancelled_appointment_frees_slot_when_configured(
        self, db, settings, scope_a, client_a, make_service, make_appointment
    ):
        s30 = await make_service(duration=30)
        await make_appointment([s30], status="cancelled")
        relaxed = settings.model_copy(update={"cancelled_appointments_block_slot": False})
        scheduler = AppointmentScheduler(ServiceCatalog(), relaxed)

        appointment = await scheduler.create_appointment(db, scope_a, booking(client_a, [s30]))
        assert appointment.time == "10:00"

    async def test_other_day_does_not_conflict(self, db, container, scope_a, client_a, make_service):
        s30 = await make_service(duration=30)
        await container.scheduler.create_appointment(db, scope_a, booking(client_a, [s30]))
        other = await container.scheduler.create_appointment(
            db, scope_a, booking(client_a, [s30], date=DAY + datetime.timedelta(days=1))
        )
        assert other.date == DAY + datetime.timedelta(days=1)

    async def test_foreign_client_rejected(self, db, container, scope_a, tenant_b, make_service):
        s30 = await make_service(duration=30)
        foreign_client = Client(tenant_id=tenant_b.id, name="João")
        db.add(foreign_client)
        await db.flush()

        with pytest.raises(ClientNotFoundError):
            await container.scheduler.create_appointment(db, scope_a, booking(foreign_client, [s30]))


# ============================================================
# Atualização
# ============================================================


class TestUpdateAppointment:

    async def test_empty_service_ids_rejected(self, db, container, scope_a, client_a, make_service):
        s30 = await make_service(duration=30)
        appointment = await container.scheduler.create_appointment(db, scope_a, booking(client_a, [s30]))
        with pytest.raises(AtLeastOneServiceRequiredError):
            await container.scheduler.update_appointment(
                db, scope_a, appointment.id, AppointmentUpdate(service_ids=[])
            )

    async def test_move_into_other_slot_conflicts(self, db, container, scope_a, client_a, make_service):
        s30 = await make_service(duration=30)
        await container.scheduler.create_appointment(db, scope_a, booking(client_a, [s30], time="09:00"))
        second = await container.scheduler.create_appointment(db, scope_a, booking(client_a, [s30], time="11:00"))

        with pytest.raises(AppointmentConflictError) as exc_info:
            await container.scheduler.update_appointment(
                db, scope_a, second.id, AppointmentUpdate(time="09:15")
            )
        assert exc_info.value.conflict_start == "09:00"
        assert second.time == "11:00"

    async def test_shift_within_own_slot_ignores_itself(self, db, container, scope_a, client_a, make_service):
        s60 = await make_service(duration=60)
        appointment = await container.scheduler.create_appointment(db, scope_a, booking(client_a, [s60]))

        updated = await container.scheduler.update_appointment(
            db, scope_a, appointment.id, AppointmentUpdate(time="10:30")
        )
        assert updated.time == "10:30"
        assert updated.duration == 60

    async def test_new_services_recompute_duration(self, db, container, scope_a, client_a, make_service):
        s30 = await make_service(duration=30)
        s45 = await make_service(duration=45)
        appointment = await container.scheduler.create_appointment(db, scope_a, booking(client_a, [s30]))

        updated = await container.scheduler.update_appointment(
            db, scope_a, appointment.id, AppointmentUpdate(service_ids=[s30.id, s45.id])
        )
        assert updated.duration == 75
        assert sorted(updated.service_ids) == sorted([s30.id, s45.id])

    async def test_longer_services_conflict_with_next(self, db, container, scope_a, client_a, make_service):
        s30 = await make_service(duration=30)
        s90 = await make_service(duration=90)
        first = await container.scheduler.create_appointment(db, scope_a, booking(client_a, [s30]))
        await container.scheduler.create_appointment(db, scope_a, booking(client_a, [s30], time="11:00"))

        with pytest.raises(AppointmentConflictError):
            await container.scheduler.update_appointment(
                db, scope_a, first.id, AppointmentUpdate(service_ids=[s90.id])
            )

    async def test_move_uses_linked_services_duration(self, db, container, scope_a, client_a, make_service):
        s30 = await make_service(duration=30)
        appointment = await container.scheduler.create_appointment(
            db, scope_a, booking(client_a, [s30], time="09:00")
        )
        await container.scheduler.create_appointment(db, scope_a, booking(client_a, [s30], time="10:30"))
        appointment.duration = 90
        await db.flush()

        moved = await container.scheduler.update_appointment(
            db, scope_a, appointment.id, AppointmentUpdate(time="10:00")
        )
        assert moved.duration == 30

    async def test_only_sent_fields_are_persisted(self, db, container, scope_a, client_a, make_service):
        s30 = await make_service(duration=30)
        appointment = await container.scheduler.create_appointment(
            db, scope_a, booking(client_a, [s30], notes="Primeira visita")
        )

        updated = await container.scheduler.update_appointment(
            db, scope_a, appointment.id, AppointmentUpdate.model_validate({"date": "2025-03-11"})
        )
        assert updated.date == datetime.date(2025, 3, 11)
        assert updated.time == "10:00"
        assert updated.notes == "Primeira visita"
        assert updated.service_ids == [s30.id]


# ============================================================
# Máquina de estados
# ============================================================


class TestStatusTransitions:

    async def test_scheduled_to_completed(self, db, container, scope_a, client_a, make_service):
        s30 = await make_service(duration=30)
        appointment = await container.scheduler.create_appointment(db, scope_a, booking(client_a, [s30]))
        updated = await container.scheduler.change_status(db, scope_a, appointment.id, AppointmentStatus.COMPLETED)
        assert updated.status == "completed"

    async def test_scheduled_to_cancelled(self, db, container, scope_a, client_a, make_service):
        s30 = await make_service(duration=30)
        appointment = await container.scheduler.create_appointment(db, scope_a, booking(client_a, [s30]))
        updated = await container.scheduler.change_status(db, scope_a, appointment.id, AppointmentStatus.CANCELLED)
        assert updated.status == "cancelled"

    @pytest.mark.parametrize("terminal", ["completed", "cancelled"])
    async def test_terminal_states(self, db, container, scope_a, make_service, make_appointment, terminal):
        s30 = await make_service(duration=30)
        appointment = await make_appointment([s30], status=terminal)
        with pytest.raises(InvalidStatusTransitionError):
            await container.scheduler.change_status(db, scope_a, appointment.id, AppointmentStatus.SCHEDULED)

    async def test_patch_status_uses_state_machine(self, db, container, scope_a, make_service, make_appointment):
        s30 = await make_service(duration=30)
        appointment = await make_appointment([s30], status="completed")
        with pytest.raises(InvalidStatusTransitionError):
            await container.scheduler.update_appointment(
                db, scope_a, appointment.id, AppointmentUpdate(status=AppointmentStatus.CANCELLED)
            )


# ============================================================
# Reparo de órfãos
# ============================================================


class TestOrphanRepair:

    async def _orphan(self, db, make_appointment, service, time):
        appointment = await make_appointment([service], time=time)
        await db.execute(
            delete(AppointmentService).where(AppointmentService.appointment_id == appointment.id)
        )
        await db.flush()
        return appointment

    async def test_find_and_fix(self, db, container, scope_a, make_service, make_appointment):
        s30 = await make_service(duration=30)
        healthy = await make_appointment([s30], time="08:00")
        orphan1 = await self._orphan(db, make_appointment, s30, "09:00")
        orphan2 = await self._orphan(db, make_appointment, s30, "11:00")

        orphans = await container.scheduler.find_orphan_appointments(db, scope_a)
        assert {a.id for a in orphans} == {orphan1.id, orphan2.id}
        assert healthy.id not in {a.id for a in orphans}

        report = await container.scheduler.fix_orphan_appointments(db, scope_a, s30.id)
        assert report == {"fixed": 2, "errors": []}
        assert await container.scheduler.find_orphan_appointments(db, scope_a) == []

    async def test_default_service_from_other_tenant(
        self, db, container, scope_a, tenant_b, make_service, make_appointment
    ):
        s30 = await make_service(duration=30)
        foreign = await make_service(duration=30, tenant=tenant_b)
        await self._orphan(db, make_appointment, s30, "09:00")

        report = await container.scheduler.fix_orphan_appointments(db, scope_a, foreign.id)
        assert report["fixed"] == 0
        assert len(report["errors"]) == 1
        assert len(await container.scheduler.find_orphan_appointments(db, scope_a)) == 1

    async def test_fix_links_service_in_session_and_sets_duration(
        self, db, container, scope_a, make_service, make_appointment
    ):
        s30 = await make_service(duration=30)
        s60 = await make_service(duration=60)
        orphan = await self._orphan(db, make_appointment, s60, "09:00")
        assert orphan.duration == 60

        await container.scheduler.fix_orphan_appointments(db, scope_a, s30.id)

        assert orphan.service_ids == [s30.id]
        assert orphan.duration == 30

    async def test_repaired_appointment_moves_with_new_duration(
        self, db, container, scope_a, client_a, make_service, make_appointment
    ):
        """Depois do reparo o agendamento ocupa só a duração do serviço padrão."""
        s30 = await make_service(duration=30)
        s60 = await make_service(duration=60)
        orphan = await self._orphan(db, make_appointment, s60, "09:00")
        await container.scheduler.fix_orphan_appointments(db, scope_a, s30.id)
        await container.scheduler.create_appointment(db, scope_a, booking(client_a, [s30], time="10:30"))

        moved = await container.scheduler.update_appointment(
            db, scope_a, orphan.id, AppointmentUpdate(time="09:55")
        )
        assert moved.time == "09:55"
        assert moved.duration == 30

    async def test_batch_continues_past_row_failure(self, container, scope_a, mock_db):
        """Uma falha no meio do lote vira erro no relatório, sem abortar."""

        class FakeSavepoint:
            async def __aenter__(self):
                return self

            async def __aexit__(self, exc_type, exc, tb):
                return False

        service_id = uuid.uuid4()
        orphans = [SimpleNamespace(id=uuid.uuid4(), service_links=[], duration=60) for _ in range(3)]
        mock_db.begin_nested = MagicMock(return_value=FakeSavepoint())
        mock_db.flush = AsyncMock(side_effect=[None, SQLAlchemyError("disk I/O error"), None])

        scheduler = container.scheduler
        with patch.object(
            scheduler.catalog, "get_services", AsyncMock(return_value={service_id: SimpleNamespace(duration=30)})
        ), patch.object(scheduler, "find_orphan_appointments", AsyncMock(return_value=orphans)):
            report = await scheduler.fix_orphan_appointments(mock_db, scope_a, service_id)

        assert report["fixed"] == 2
        assert len(report["errors"]) == 1
        assert str(orphans[1].id) in report["errors"][0]
        assert all(len(o.service_links) == 1 for o in orphans)


# ============================================================
# Expediente e disponibilidade
# ============================================================


def window(day, start="09:00", end="18:00", active=True) -> BusinessHoursCreate:
    return BusinessHoursCreate(day_of_week=day, start_time=start, end_time=end, active=active)


class TestAvailability:

    def test_day_of_week_starts_on_sunday(self):
        assert day_of_week(datetime.date(2025, 3, 9)) == 0
        assert day_of_week(DAY) == 1
        assert day_of_week(datetime.date(2025, 3, 15)) == 6

    def test_window_must_end_after_start(self):
        with pytest.raises(ValidationError):
            window(1, start="18:00", end="09:00")

    async def test_skips_days_without_active_hours(self, db, container, scope_a):
        scheduler = container.scheduler
        await scheduler.add_business_hours(db, scope_a, window(1))
        await scheduler.add_business_hours(db, scope_a, window(2, active=False))

        days = await scheduler.get_availability(
            db, scope_a, datetime.date(2025, 3, 9), datetime.date(2025, 3, 11)
        )

        assert [d["date"] for d in days] == [DAY]
        assert days[0]["day_of_week"] == 1
        assert days[0]["business_hours"] == [{"start_time": "09:00", "end_time": "18:00"}]
        assert days[0]["appointments"] == []

    async def test_lists_appointments_with_service_durations(
        self, db, container, scope_a, make_service, make_appointment
    ):
        scheduler = container.scheduler
        await scheduler.add_business_hours(db, scope_a, window(1, "14:00", "19:00"))
        await scheduler.add_business_hours(db, scope_a, window(1, "08:00", "12:00"))
        s30 = await make_service(duration=30)
        s45 = await make_service(duration=45)
        later = await make_appointment([s30], time="15:00")
        earlier = await make_appointment([s30, s45], time="09:00")
        earlier.duration = 60
        await db.flush()

        days = await scheduler.get_availability(db, scope_a, DAY, DAY)

        assert days[0]["business_hours"] == [
            {"start_time": "08:00", "end_time": "12:00"},
            {"start_time": "14:00", "end_time": "19:00"},
        ]
        booked = days[0]["appointments"]
        assert [b["id"] for b in booked] == [earlier.id, later.id]
        assert booked[0]["duration"] == 75
        assert sorted(booked[0]["service_ids"]) == sorted([s30.id, s45.id])
        assert booked[1]["status"] == "scheduled"

    async def test_other_tenant_hours_and_appointments_ignored(
        self, db, container, scope_a, scope_b, make_service, make_appointment
    ):
        await container.scheduler.add_business_hours(db, scope_b, window(1))
        s30 = await make_service(duration=30)
        await make_appointment([s30])

        assert await container.scheduler.get_availability(db, scope_a, DAY, DAY) == []
        days = await container.scheduler.get_availability(db, scope_b, DAY, DAY)
        assert days[0]["appointments"] == []

    async def test_defaults_to_next_thirty_days(self, db, container, scope_a):
        for day in range(7):
            await container.scheduler.add_business_hours(db, scope_a, window(day))
        with patch.object(container.scheduler, "today", return_value=DAY):
            days = await container.scheduler.get_availability(db, scope_a)
        assert days[0]["date"] == DAY
        assert days[-1]["date"] == DAY + datetime.timedelta(days=30)

    async def test_invalid_ranges(self, db, container, scope_a):
        with pytest.raises(BusinessValidationError):
            await container.scheduler.get_availability(
                db, scope_a, DAY, DAY - datetime.timedelta(days=1)
            )
        with pytest.raises(BusinessValidationError):
            await container.scheduler.get_availability(
                db, scope_a, DAY, DAY + datetime.timedelta(days=400)
            )
