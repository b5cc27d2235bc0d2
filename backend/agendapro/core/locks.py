"""
Advisory locks transacionais (PostgreSQL)
Projeto: AgendaPro

Serializa sequências ler-decidir-escrever quando settings.booking_slot_lock
está ativo. Em outros bancos, ou com a opção desligada, não faz nada e o
comportamento permanece best-effort.
"""

import hashlib
import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from agendapro.core.config import Settings

logger = logging.getLogger(__name__)


def lock_key(*parts: object) -> int:
    """Chave int64 estável derivada das partes (mesma entre processos)."""
    raw = "|".join(str(p) for p in parts).encode("utf-8")
    digest = hashlib.blake2b(raw, digest_size=8).digest()
    return int.from_bytes(digest, "big", signed=True)


async def acquire_advisory_lock(
    db: AsyncSession,
    settings: Settings,
    *key_parts: object,
) -> bool:
    """
    Obtém um pg_advisory_xact_lock liberado no commit/rollback.

    Returns:
        True se o lock foi obtido, False se a opção está desligada
        ou o banco não é PostgreSQL
    """
    if not settings.booking_slot_lock:
        return False
    if db.get_bind().dialect.name != "postgresql":
        return False

    key = lock_key(*key_parts)
    await db.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": key})
    logger.debug("Advisory lock %s obtido para %s", key, key_parts)
    return True
