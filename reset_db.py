"""
Recria todas as tabelas do banco configurado em DATABASE_URL.

Uso (desenvolvimento): python reset_db.py
"""

import asyncio
import logging

from agendapro.core.config import get_settings
from agendapro.core.database import Database
from agendapro.models import Base

logger = logging.getLogger("reset_db")


async def reset() -> None:
    settings = get_settings()
    if settings.is_production:
        raise SystemExit("reset_db não pode ser executado em produção")

    database = Database.from_settings(settings)
    try:
        logger.info("Conectando ao banco de dados, removendo tabelas...")
        async with database.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            logger.info("Tabelas removidas. Criando novas tabelas...")
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Banco de dados recriado com sucesso!")
    finally:
        await database.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    asyncio.run(reset())
