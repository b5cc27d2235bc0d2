"""
Main Entry Point - FastAPI Application
Projeto: AgendaPro

Factory da aplicação FastAPI: middleware, tratamento de erros,
routers e ciclo de vida do banco de dados.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from agendapro.api.v1 import api_v1_router
from agendapro.core.config import Settings, get_settings
from agendapro.core.container import build_container
from agendapro.core.database import Database
from agendapro.core.exceptions import AppException

logger = logging.getLogger(__name__)


# ------------------------------------------------------------
# Exception Handlers
# ------------------------------------------------------------
async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Converte qualquer AppException em {error, code, details?}.

    O status HTTP vem da própria exceção (404, 409, 422, 403...).
    """
    content = {"error": exc.detail, "code": exc.error_code}
    if exc.extra:
        content["details"] = exc.extra
    return JSONResponse(status_code=exc.status_code, content=content)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Gestor genérico para exceções não capturadas.

    Registra o erro completo no log e devolve uma resposta 500 genérica.
    """
    logger.error(
        "Exceção não tratada em %s %s: %s",
        request.method, request.url.path, exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={"error": "Erro interno do servidor", "code": "INTERNAL_SERVER_ERROR"},
    )


# ------------------------------------------------------------
# Lifespan Handler
# ------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gerencia o ciclo de vida da aplicação.

    - Startup: cria (se necessário) e verifica o Database
    - Shutdown: fecha o pool de conexões
    """
    settings: Settings = app.state.container.settings
    logger.info("Iniciando %s v%s", settings.app_name, settings.app_version)

    if getattr(app.state, "database", None) is None:
        app.state.database = Database.from_settings(settings)
    await app.state.database.init()
    logger.info("Aplicação iniciada com sucesso")

    yield

    logger.info("Encerrando aplicação...")
    await app.state.database.dispose()
    logger.info("Aplicação encerrada")


# ------------------------------------------------------------
# FastAPI Application
# ------------------------------------------------------------
def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """
    Cria a aplicação com seus componentes injetados.

    Args:
        settings: Configurações (padrão: get_settings())
        database: Database já construído (testes); senão criado no startup
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="AgendaPro - agendamentos, pedidos e financeiro - Backend API",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.container = build_container(settings)
    app.state.database = database

    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get(
        "/health",
        name="Health Check",
        summary="Verifica o estado da aplicação",
        tags=["System"],
    )
    async def health_check() -> dict[str, str]:
        return {
            "status": "healthy",
            "app": settings.app_name,
            "version": settings.app_version,
            "environment": settings.app_env,
        }

    app.include_router(api_v1_router)
    return app


def _configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


# Instância usada pelo uvicorn: `uvicorn agendapro.main:app`
_configure_logging(get_settings())
app = create_app()
