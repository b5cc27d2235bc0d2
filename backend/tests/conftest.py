"""
Configuração do pytest e fixtures comuns.

Os testes de serviço rodam contra SQLite em memória (aiosqlite) com o
mesmo schema dos modelos; o mock de AsyncSession cobre os casos em que
não queremos tocar o banco.
"""

import datetime
import uuid
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from agendapro.core.config import Settings
from agendapro.core.container import build_container
from agendapro.core.tenancy import CallerIdentity, TenantScope
from agendapro.models import (
    Appointment,
    AppointmentService,
    Base,
    Client,
    ClientAddress,
    FinanceCategory,
    Product,
    Service,
    Tenant,
)


# ============================================================
# Configurações e container
# ============================================================


@pytest.fixture
def settings():
    """Settings de teste (sem advisory lock, cancelados bloqueiam)."""
    return Settings(app_env="testing", database_url="sqlite+aiosqlite://")


@pytest.fixture
def container(settings):
    return build_container(settings)


# ============================================================
# Banco de dados SQLite em memória
# ============================================================


def enable_sqlite_savepoints(engine) -> None:
    """
    Deixa o SQLAlchemy emitir BEGIN, para SAVEPOINT funcionar com pysqlite.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_savepoints(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db(engine):
    """AsyncSession configurada como a da aplicação."""
    factory = async_sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )
    async with factory() as session:
        yield session


@pytest.fixture
def mock_db():
    """Cria um mock de AsyncSession."""
    db = AsyncMock(spec=AsyncSession)
    db.execute = AsyncMock()
    db.add = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.flush = AsyncMock()
    db.refresh = AsyncMock()
    db.delete = MagicMock()
    return db


# ============================================================
# Tenants e escopos
# ============================================================


@pytest.fixture
async def tenant_a(db):
    tenant = Tenant(name="Salão Aurora")
    db.add(tenant)
    await db.flush()
    return tenant


@pytest.fixture
async def tenant_b(db):
    tenant = Tenant(name="Barbearia Boa Vista")
    db.add(tenant)
    await db.flush()
    return tenant


def make_scope(tenant_id, role="admin", caller_tenant_id=None):
    caller = CallerIdentity(
        user_id=uuid.uuid4(),
        tenant_id=caller_tenant_id if caller_tenant_id is not None else tenant_id,
        role=role,
    )
    return TenantScope(caller=caller, tenant_id=tenant_id)


@pytest.fixture
def scope_a(tenant_a):
    return make_scope(tenant_a.id)


@pytest.fixture
def scope_b(tenant_b):
    return make_scope(tenant_b.id)


# ============================================================
# Factories de entidades
# ============================================================


@pytest.fixture
async def client_a(db, tenant_a):
    client = Client(tenant_id=tenant_a.id, name="Maria Silva", phone="11999990000")
    db.add(client)
    await db.flush()
    return client


@pytest.fixture
def make_service(db, tenant_a):
    """Factory de serviços (por padrão no tenant A)."""

    async def _make(duration=30, value="50.00", tenant=None, **kwargs):
        service = Service(
            tenant_id=(tenant or tenant_a).id,
            name=kwargs.pop("name", f"Serviço {duration}min"),
            duration=duration,
            value=Decimal(value),
            **kwargs,
        )
        db.add(service)
        await db.flush()
        return service

    return _make


@pytest.fixture
def make_product(db, tenant_a):
    """Factory de produtos (por padrão no tenant A, com estoque controlado)."""

    async def _make(price="10.00", quantity=5, manage_stock=True, tenant=None, **kwargs):
        product = Product(
            tenant_id=(tenant or tenant_a).id,
            name=kwargs.pop("name", "Shampoo"),
            price=Decimal(price),
            quantity=quantity,
            manage_stock=manage_stock,
            **kwargs,
        )
        db.add(product)
        await db.flush()
        return product

    return _make


@pytest.fixture
def make_appointment(db, tenant_a, client_a):
    """Insere um agendamento diretamente, sem passar pelas regras de conflito."""

    async def _make(services, date=datetime.date(2025, 3, 10), time="10:00", status="scheduled"):
        duration = sum(s.duration for s in services) or 60
        appointment = Appointment(
            tenant_id=tenant_a.id,
            client_id=client_a.id,
            date=date,
            time=time,
            duration=duration,
            status=status,
            service_links=[AppointmentService(service_id=s.id) for s in services],
        )
        db.add(appointment)
        await db.flush()
        return appointment

    return _make


@pytest.fixture
async def address_a(db, tenant_a, client_a):
    address = ClientAddress(
        tenant_id=tenant_a.id,
        client_id=client_a.id,
        label="Casa",
        street="Rua das Flores",
        number="120",
        neighborhood="Centro",
        city="Campinas",
        zip_code="13010-000",
        is_default=True,
    )
    db.add(address)
    await db.flush()
    return address


@pytest.fixture
async def default_categories(db, tenant_a):
    categories = [
        FinanceCategory(tenant_id=tenant_a.id, name="Serviços", type="income", is_default=True),
        FinanceCategory(tenant_id=tenant_a.id, name="Produtos", type="income", is_default=True),
        FinanceCategory(tenant_id=tenant_a.id, name="Despesas gerais", type="expense", is_default=True),
    ]
    db.add_all(categories)
    await db.flush()
    return {c.name: c for c in categories}


@pytest.fixture
def scope_factory():
    """Cria escopos arbitrários: scope_factory(tenant_id, role=..., caller_tenant_id=...)."""
    return make_scope
