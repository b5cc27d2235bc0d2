"""
Configuração do Banco de Dados - SQLAlchemy 2.0 Async
Projeto: AgendaPro

Define o objeto Database (engine + session factory) e a dependency
que entrega uma sessão por requisição ao FastAPI.
"""

import logging
from typing import AsyncGenerator, Optional

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from agendapro.core.config import Settings

logger = logging.getLogger(__name__)


class Database:
    """
    Store da aplicação: engine assíncrono e fábrica de sessões.

    Construído uma única vez pela factory da aplicação e injetado
    onde for necessário; nenhum módulo acessa uma conexão global.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine
        self.session_factory = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Cria o engine com pool de conexões a partir das configurações."""
        engine = create_async_engine(
            settings.database_url,
            echo=settings.debug,
            pool_pre_ping=True,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
        )
        return cls(engine)

    async def init(self) -> None:
        """
        Verifica a conexão com o banco de dados.

        Executa um teste de conexão para garantir que o banco
        está acessível.
        """
        try:
            async with self.engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
            logger.info("Conexão com o banco de dados estabelecida com sucesso")
        except Exception as e:
            logger.error("Erro de conexão com o banco de dados: %s", e)
            raise

    async def dispose(self) -> None:
        """Fecha as conexões do pool. Chamar no shutdown da aplicação."""
        await self.engine.dispose()
        logger.info("Conexões com o banco de dados fechadas")

    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Abre uma sessão e faz rollback se a requisição falhar."""
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency injection para o FastAPI.

    Cria uma sessão por requisição a partir do Database registrado
    em app.state e a fecha automaticamente ao final.

    Example:
        @router.get("/appointments")
        async def list_appointments(db: AsyncSession = Depends(get_db)):
            ...
    """
    database: Optional[Database] = getattr(request.app.state, "database", None)
    if database is None:
        raise RuntimeError("Database não inicializado na aplicação")
    async for session in database.session():
        yield session
