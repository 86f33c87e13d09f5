# caminho: backoffice_app/infrastructure/db/utils.py
# Funções:
# - commit_or_rollback(): executa a instrução (se houver), confirma a transação e desfaz em caso de erro
# - utcnow(): relógio UTC usado nas colunas de auditoria/login

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Executable
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession


async def commit_or_rollback(session: AsyncSession, statement: Optional[Executable] = None) -> None:
    try:
        if statement is not None:
            await session.execute(statement)
        await session.flush()
        await session.commit()
    except SQLAlchemyError:
        await session.rollback()
        raise


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
